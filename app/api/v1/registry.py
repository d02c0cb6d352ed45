"""Registration, sign-in and dealership user routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.common import data_response, get_store
from app.schemas.registry import LoginRequest, RegisterDealership, RegisterUser, SessionRead, User
from app.services.registry import AuthenticationError, DealershipRegistry, RegistrationError
from app.services.storage import KeyValueStore


router = APIRouter(tags=["registry"])


def get_registry(store: KeyValueStore = Depends(get_store)) -> DealershipRegistry:
    return DealershipRegistry(store)


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
async def register_dealership(
    payload: RegisterDealership, registry: DealershipRegistry = Depends(get_registry)
) -> dict[str, SessionRead]:
    """Register a dealership and sign in its first admin."""

    try:
        session = await registry.register_dealership(payload)
    except RegistrationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "REGISTRATION_FAILED", "message": str(exc)},
        ) from exc
    return data_response(session)


@router.post("/auth/login")
async def login(
    payload: LoginRequest, registry: DealershipRegistry = Depends(get_registry)
) -> dict[str, SessionRead]:
    """Sign in by e-mail; passwords are accepted but not verified."""

    try:
        session = await registry.login(payload.email)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "AUTHENTICATION_FAILED", "message": str(exc)},
        ) from exc
    return data_response(session)


@router.post("/dealerships/{dealership_id}/users", status_code=status.HTTP_201_CREATED)
async def register_user(
    dealership_id: str,
    payload: RegisterUser,
    registry: DealershipRegistry = Depends(get_registry),
) -> dict[str, User]:
    try:
        user = await registry.register_user(payload, dealership_id)
    except RegistrationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "REGISTRATION_FAILED", "message": str(exc)},
        ) from exc
    return data_response(user)


@router.get("/dealerships/{dealership_id}/users")
async def list_dealership_users(
    dealership_id: str, registry: DealershipRegistry = Depends(get_registry)
) -> dict[str, list[User]]:
    return data_response(await registry.get_dealership_users(dealership_id))


@router.delete("/users/{user_id}")
async def deactivate_user(
    user_id: str, registry: DealershipRegistry = Depends(get_registry)
) -> dict[str, User]:
    """Deactivate a user; the record is kept."""

    user = await registry.deactivate_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return data_response(user)
