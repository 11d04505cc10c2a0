"""
API v1 Router

Every tenant-scoped operation takes its organization id explicitly
(path, query or body); nothing reads an ambient "current org".
"""

from fastapi import APIRouter
from . import (
    features,
    invitations,
    org_subscriptions,
    organizations,
    plans,
    teams,
    user_organizations,
    users,
)

router = APIRouter()

# Tenant directory
router.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(teams.router, prefix="/teams", tags=["Teams"])

# Membership & invitations
router.include_router(
    user_organizations.router, prefix="/user-organizations", tags=["Memberships"]
)
router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])

# Catalog & subscriptions
router.include_router(features.router, prefix="/features", tags=["Features"])
router.include_router(plans.router, prefix="/plans", tags=["Plans"])
router.include_router(org_subscriptions.router, prefix="/org-subs", tags=["Subscriptions"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/organizations",
            "/users",
            "/teams",
            "/user-organizations",
            "/invitations",
            "/features",
            "/plans",
            "/org-subs",
        ],
    }
