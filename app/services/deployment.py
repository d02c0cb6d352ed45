"""Hosting deployment status.

There is no hosting-provider API call yet: a deployment is reported as
successful whenever the Supabase backend answers, and triggering a deploy
only returns a pending placeholder.
"""
from __future__ import annotations

import logging

from app.core.config import Settings, get_settings
from app.schemas.integrations import DeploymentState, DeploymentStatus
from app.services.supabase import MockSupabaseClient, SupabaseClient, get_supabase_client

SIMULATED_DEPLOY_ID = "demo-deployment-id"
PENDING_DEPLOY_ID = "new-deployment-id"

logger = logging.getLogger(__name__)


async def get_deployment_status(
    client: SupabaseClient | MockSupabaseClient | None = None,
    settings: Settings | None = None,
) -> DeploymentStatus:
    settings = settings or get_settings()
    client = client or get_supabase_client(settings)

    result = await client.select("dealerships", "id", limit=1)
    if not result.ok:
        return DeploymentStatus(status=DeploymentState.ERROR, error_message=result.error)

    return DeploymentStatus(
        status=DeploymentState.SUCCESS,
        deploy_url=settings.deploy_site_url,
        deploy_id=SIMULATED_DEPLOY_ID,
        claimed=False,
        claim_url=settings.deploy_claim_url,
    )


async def deploy_project() -> DeploymentStatus:
    logger.info("Deployment requested", extra={"deploy_id": PENDING_DEPLOY_ID})
    return DeploymentStatus(status=DeploymentState.PENDING, deploy_id=PENDING_DEPLOY_ID)
