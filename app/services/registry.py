"""Dealership and user registry, including the super-admin dashboard views."""
from __future__ import annotations

import logging
from typing import Any

from app.schemas.registry import (
    DashboardOverview,
    Dealership,
    DealershipFeatures,
    DealershipSettings,
    RegisterDealership,
    RegisterUser,
    SessionRead,
    SubscriptionPlan,
    User,
    UserRole,
)
from app.services.storage import KeyValueStore, generate_id, utcnow

DEALERSHIPS_KEY = "dealerships"
USERS_KEY = "users"
PLATFORM_DEALERSHIP_ID = "platform-admin"

MONTHLY_RATES: dict[SubscriptionPlan, int] = {
    SubscriptionPlan.ENTERPRISE: 999,
    SubscriptionPlan.PREMIUM: 299,
    SubscriptionPlan.BASIC: 99,
}

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base error for registration and sign-in failures."""


class RegistrationError(RegistryError):
    """Raised when a dealership or user cannot be registered."""


class AuthenticationError(RegistryError):
    """Raised when sign-in is refused."""


def is_super_admin(user: User) -> bool:
    return user.dealership_id == PLATFORM_DEALERSHIP_ID


def _initials(first_name: str, last_name: str) -> str:
    return f"{first_name[:1]}{last_name[:1]}".upper()


def _demo_dealerships() -> list[dict[str, Any]]:
    full_features = DealershipFeatures(
        analytics=True, multi_location=True, custom_reports=True, api_access=True
    )
    return [
        {
            "id": PLATFORM_DEALERSHIP_ID,
            "name": "ReconPro Platform",
            "address": "1 Platform Drive",
            "city": "Tech City",
            "state": "CA",
            "zip_code": "94000",
            "phone": "(555) 000-0000",
            "email": "platform@reconpro.com",
            "website": "https://reconpro.com",
            "subscription_plan": SubscriptionPlan.ENTERPRISE,
            "settings": DealershipSettings(max_users=999, features=full_features),
        },
        {
            "id": "demo-dealership-1",
            "name": "Premier Auto Group",
            "address": "123 Main Street",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "phone": "(555) 123-4567",
            "email": "info@premierauto.com",
            "website": "https://premierauto.com",
            "subscription_plan": SubscriptionPlan.PREMIUM,
            "settings": DealershipSettings(
                max_users=50,
                features=DealershipFeatures(
                    analytics=True, multi_location=True, custom_reports=True
                ),
            ),
        },
        {
            "id": "demo-dealership-2",
            "name": "City Motors",
            "address": "456 Oak Avenue",
            "city": "Chicago",
            "state": "IL",
            "zip_code": "60601",
            "phone": "(555) 987-6543",
            "email": "contact@citymotors.com",
            "subscription_plan": SubscriptionPlan.BASIC,
        },
    ]


def _demo_users() -> list[dict[str, Any]]:
    return [
        {
            "id": "super-admin-1",
            "email": "admin@reconpro.com",
            "first_name": "Super",
            "last_name": "Admin",
            "role": UserRole.ADMIN,
            "dealership_id": PLATFORM_DEALERSHIP_ID,
        },
        {
            "id": "user-1",
            "email": "admin@premierauto.com",
            "first_name": "John",
            "last_name": "Smith",
            "role": UserRole.ADMIN,
            "dealership_id": "demo-dealership-1",
        },
        {
            "id": "user-2",
            "email": "manager@premierauto.com",
            "first_name": "Sarah",
            "last_name": "Johnson",
            "role": UserRole.MANAGER,
            "dealership_id": "demo-dealership-1",
        },
        {
            "id": "user-3",
            "email": "tech@premierauto.com",
            "first_name": "Mike",
            "last_name": "Wilson",
            "role": UserRole.TECHNICIAN,
            "dealership_id": "demo-dealership-1",
        },
        {
            "id": "user-4",
            "email": "admin@citymotors.com",
            "first_name": "Lisa",
            "last_name": "Davis",
            "role": UserRole.ADMIN,
            "dealership_id": "demo-dealership-2",
        },
        {
            "id": "user-5",
            "email": "sales@citymotors.com",
            "first_name": "Tom",
            "last_name": "Brown",
            "role": UserRole.SALES,
            "dealership_id": "demo-dealership-2",
        },
    ]


class DealershipRegistry:
    """Tenants and their users, stored in the global ``dealerships``/``users`` slots."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def initialize_demo_data(self) -> None:
        """Write the platform tenant and demo dealerships, replacing what is stored."""

        timestamp = utcnow()
        dealerships = [Dealership(**data, created_at=timestamp) for data in _demo_dealerships()]
        users = [
            User(
                **data,
                initials=_initials(data["first_name"], data["last_name"]),
                created_at=timestamp,
            )
            for data in _demo_users()
        ]
        await self._save_dealerships(dealerships)
        await self._save_users(users)
        logger.info(
            "Initialized demo registry data",
            extra={"dealerships": len(dealerships), "users": len(users)},
        )

    async def get_dealerships(self) -> list[Dealership]:
        data = await self.store.get_json(DEALERSHIPS_KEY)
        return [Dealership.model_validate(item) for item in data or []]

    async def get_users(self) -> list[User]:
        data = await self.store.get_json(USERS_KEY)
        return [User.model_validate(item) for item in data or []]

    async def _save_dealerships(self, dealerships: list[Dealership]) -> None:
        await self.store.set_json(
            DEALERSHIPS_KEY, [item.model_dump(mode="json") for item in dealerships]
        )

    async def _save_users(self, users: list[User]) -> None:
        await self.store.set_json(USERS_KEY, [item.model_dump(mode="json") for item in users])

    async def get_dealership(self, dealership_id: str) -> Dealership | None:
        dealerships = await self.get_dealerships()
        return next((d for d in dealerships if d.id == dealership_id), None)

    async def get_dealership_users(self, dealership_id: str) -> list[User]:
        return [
            user
            for user in await self.get_users()
            if user.dealership_id == dealership_id and user.is_active
        ]

    async def register_dealership(self, data: RegisterDealership) -> SessionRead:
        """Create a basic-plan dealership together with its first admin user."""

        dealerships = await self.get_dealerships()
        users = await self.get_users()

        dealership_email = data.dealership_email.lower()
        if any(d.email.lower() == dealership_email for d in dealerships):
            raise RegistrationError("A dealership with this email already exists")
        if any(u.email.lower() == data.email.lower() for u in users):
            raise RegistrationError("A user with this email already exists")

        timestamp = utcnow()
        dealership = Dealership(
            id=generate_id("dealership"),
            name=data.dealership_name,
            address=data.address,
            city=data.city,
            state=data.state,
            zip_code=data.zip_code,
            phone=data.phone,
            email=data.dealership_email,
            website=data.website,
            subscription_plan=SubscriptionPlan.BASIC,
            settings=DealershipSettings(max_users=10),
            created_at=timestamp,
        )
        user = User(
            id=generate_id("user"),
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            initials=_initials(data.first_name, data.last_name),
            role=UserRole.ADMIN,
            dealership_id=dealership.id,
            created_at=timestamp,
        )

        dealerships.append(dealership)
        users.append(user)
        await self._save_dealerships(dealerships)
        await self._save_users(users)
        logger.info("Registered dealership", extra={"dealership_id": dealership.id})
        return SessionRead(user=user, dealership=dealership)

    async def register_user(self, data: RegisterUser, dealership_id: str) -> User:
        users = await self.get_users()
        dealership = next(
            (d for d in await self.get_dealerships() if d.id == dealership_id and d.is_active),
            None,
        )
        if dealership is None:
            raise RegistrationError("Dealership not found")

        active_members = [u for u in users if u.dealership_id == dealership_id and u.is_active]
        if len(active_members) >= dealership.settings.max_users:
            raise RegistrationError("Maximum number of users reached for this dealership")
        if any(u.email.lower() == data.email.lower() for u in users):
            raise RegistrationError("A user with this email already exists")

        user = User(
            id=generate_id("user"),
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            initials=_initials(data.first_name, data.last_name),
            role=data.role,
            dealership_id=dealership_id,
            created_at=utcnow(),
        )
        users.append(user)
        await self._save_users(users)
        return user

    async def login(self, email: str) -> SessionRead:
        """Resolve an active user and their active dealership by e-mail."""

        lowered = email.lower()
        user = next(
            (u for u in await self.get_users() if u.email.lower() == lowered and u.is_active),
            None,
        )
        if user is None:
            raise AuthenticationError("Invalid email or password")

        dealership = next(
            (
                d
                for d in await self.get_dealerships()
                if d.id == user.dealership_id and d.is_active
            ),
            None,
        )
        if dealership is None:
            raise AuthenticationError("Dealership not found or inactive")

        user.last_login = utcnow()
        await self.update_user(user)
        return SessionRead(user=user, dealership=dealership)

    async def update_user(self, user: User) -> None:
        users = await self.get_users()
        for index, existing in enumerate(users):
            if existing.id == user.id:
                users[index] = user
                await self._save_users(users)
                return

    async def update_dealership(self, dealership: Dealership) -> None:
        dealerships = await self.get_dealerships()
        for index, existing in enumerate(dealerships):
            if existing.id == dealership.id:
                dealerships[index] = dealership
                await self._save_dealerships(dealerships)
                return

    async def deactivate_user(self, user_id: str) -> User | None:
        users = await self.get_users()
        user = next((u for u in users if u.id == user_id), None)
        if user is None:
            return None
        user.is_active = False
        await self._save_users(users)
        return user

    async def get_all_dealerships_for_super_admin(self) -> list[Dealership]:
        return [d for d in await self.get_dealerships() if d.id != PLATFORM_DEALERSHIP_ID]

    async def get_all_users_for_super_admin(self) -> list[User]:
        return [u for u in await self.get_users() if u.dealership_id != PLATFORM_DEALERSHIP_ID]

    async def toggle_dealership_status(self, dealership_id: str) -> Dealership | None:
        dealership = await self.get_dealership(dealership_id)
        if dealership is None:
            return None
        dealership.is_active = not dealership.is_active
        dealership.updated_at = utcnow()
        await self.update_dealership(dealership)
        return dealership

    async def get_dashboard_overview(self) -> DashboardOverview:
        dealerships = await self.get_all_dealerships_for_super_admin()
        users = await self.get_all_users_for_super_admin()
        revenue = sum(
            MONTHLY_RATES.get(d.subscription_plan, MONTHLY_RATES[SubscriptionPlan.BASIC])
            for d in dealerships
            if d.is_active
        )
        return DashboardOverview(
            total_dealerships=len(dealerships),
            active_dealerships=sum(1 for d in dealerships if d.is_active),
            total_users=len(users),
            active_users=sum(1 for u in users if u.is_active),
            monthly_revenue=revenue,
        )
