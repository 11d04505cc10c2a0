"""
Script to create an organization with an owner user for local testing.

Usage:
    python -m app.scripts.bootstrap_org --org "Acme" --email owner@acme.dev --password s3cretpass
"""

import argparse
import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session_context, init_db
from app.models.organization import Organization
from app.models.user import User
from app.services import memberships as membership_service
from app.services import organizations as org_service
from app.services import users as user_service
from tenantcore_shared.schemas.common import Role
from tenantcore_shared.schemas.organizations import OrgCreateRequest, UserCreateRequest


async def bootstrap(
    org_name: str,
    email: str,
    password: Optional[str],
    session: AsyncSession,
) -> tuple[Organization, User]:
    """Create the org, reuse or create the user, and make them its owner."""
    org = await org_service.create_org(OrgCreateRequest(name=org_name), session)
    print(f"Created organization '{org.name}' ({org.id}).")

    user = await user_service.find_by_email(email, session)
    if user is None:
        user = await user_service.create_user(
            UserCreateRequest(email=email, password=password), session
        )
        print(f"Created user: {user.email}")
    else:
        print(f"User {user.email} already exists.")

    await membership_service.ensure_member(user.id, org.id, session, role_in_org=Role.OWNER.value)
    print(f"Added {user.email} as owner of '{org.name}'.")
    return org, user


async def main(org_name: str, email: str, password: Optional[str]) -> None:
    await init_db()
    async with get_session_context() as session:
        await bootstrap(org_name, email, password, session)
    print("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an organization and its owner.")
    parser.add_argument("--org", required=True, help="Organization display name")
    parser.add_argument("--email", required=True, help="Email address for the owner")
    parser.add_argument("--password", default=None, help="Password for a newly created owner")

    args = parser.parse_args()

    asyncio.run(main(args.org, args.email, args.password))
