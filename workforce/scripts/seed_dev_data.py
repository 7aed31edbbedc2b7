"""
Seed a development database with an admin user, an organization and the
default catalog services.

Usage:
    python -m workforce.scripts.seed_dev_data --email admin@example.com --password changeme123

Requires WF_DATABASE_URL (or defaults to localhost).
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from workforce.core.database import get_session_context, init_db
from workforce.core.security import hash_password
from workforce.models.organization import Organization
from workforce.models.service import Service
from workforce.models.user import User
from workforce.models.user_org import UserOrg
from workforce_shared.schemas.common import OrgRole, SubscriptionTier
from workforce_shared.schemas.services import ServiceCategory

DEFAULT_ORG_NAME = "workforce-dev"

CATALOG = [
    {
        "service_name": "Facebook Auto Post Agent Service",
        "service_short_name": "facebook-auto-post",
        "description": (
            "Automated posting for Facebook pages and profiles: content scheduling, "
            "posting, engagement monitoring and analytics."
        ),
        "category": ServiceCategory.AUTOMATION.value,
        "tags": ["facebook", "social-media", "automation", "posting", "scheduling", "agent"],
    },
    {
        "service_name": "TikTok Auto Post Agent Service",
        "service_short_name": "tiktok-auto-post",
        "description": (
            "TikTok content automation: video uploads, hashtag optimization, "
            "trend analysis, scheduling and engagement tracking."
        ),
        "category": ServiceCategory.AUTOMATION.value,
        "tags": ["tiktok", "social-media", "automation", "video", "agent"],
    },
    {
        "service_name": "Orchestrations Agent Service",
        "service_short_name": "orchestrations-agent",
        "description": (
            "Workflow orchestration across agents: business processes, task "
            "scheduling and cross-system workflow management."
        ),
        "category": ServiceCategory.AUTOMATION.value,
        "tags": ["orchestration", "workflow", "automation", "scheduling", "agent", "integration"],
    },
]


async def ensure_admin(session: AsyncSession, email: str, password: str) -> None:
    # 1. Ensure the development organization exists
    result = await session.execute(select(Organization).where(Organization.name == DEFAULT_ORG_NAME))
    org = result.scalar_one_or_none()
    if not org:
        org = Organization(
            name=DEFAULT_ORG_NAME,
            display_name="Workforce Development",
            subscription_tier=SubscriptionTier.ENTERPRISE.value,
            max_users=50,
        )
        session.add(org)
        await session.flush()
        print(f"Created organization {DEFAULT_ORG_NAME}.")

    # 2. Ensure the user exists
    result = await session.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user:
        user = User(
            email=email.lower(),
            username=email.split("@")[0].lower(),
            name="Workforce Admin",
            password_hash=hash_password(password),
            is_platform_admin=True,
            current_org_id=org.id,
        )
        session.add(user)
        await session.flush()
        print(f"Created user: {email}")
    else:
        print(f"User {email} already exists.")

    # 3. Ensure owner membership
    membership = await session.get(UserOrg, (user.id, org.id))
    if not membership:
        session.add(UserOrg(user_id=user.id, org_id=org.id, role=OrgRole.OWNER.value))
        print(f"Added {email} as owner of {DEFAULT_ORG_NAME}.")


async def seed_catalog(session: AsyncSession) -> None:
    for entry in CATALOG:
        result = await session.execute(
            select(Service.id).where(Service.service_short_name == entry["service_short_name"])
        )
        if result.first() is not None:
            print(f"Service {entry['service_short_name']} already exists.")
            continue
        session.add(Service(**entry))
        print(f"Created service {entry['service_short_name']}.")


async def seed(email: str, password: str) -> None:
    await init_db()
    async with get_session_context() as session:
        await ensure_admin(session, email, password)
        await seed_catalog(session)
    print("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a local Workforce database.")
    parser.add_argument("--email", required=True, help="Email address for the admin user")
    parser.add_argument("--password", required=True, help="Password for the admin user")

    args = parser.parse_args()

    asyncio.run(seed(args.email, args.password))
