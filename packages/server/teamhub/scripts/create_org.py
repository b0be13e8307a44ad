"""
Script to create an organization owned by a (possibly new) user.
"""

import argparse
import asyncio
from typing import Optional

import structlog

from teamhub.core.config import get_settings
from teamhub.core.database import transaction
from teamhub.core.logging_config import configure_logging
from teamhub.services import users
from teamhub.services.membership_manager import MembershipManager

log = structlog.get_logger()


async def create_org_for_email(
    email: str,
    name: str,
    org_name: Optional[str] = None,
    session_factory=None,
) -> str:
    """Ensure the user exists, create the org, and return its slug."""
    async with transaction(session_factory) as session:
        user = await users.find_user_by_email(email, session)
        if not user:
            user = await users.create_user(name, session, email=email)
            log.info("script.user_created", email=email)
        user_id = user.id

    manager = MembershipManager(session_factory)
    org = await manager.create_organization(user_id, org_name or name)
    return org.slug


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create an organization and its owner.")
    parser.add_argument("--email", required=True, help="Email address of the owner")
    parser.add_argument("--name", required=True, help="Display name of the owner")
    parser.add_argument("--org", default=None, help="Organization name (defaults to --name)")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    slug = asyncio.run(create_org_for_email(args.email, args.name, args.org))
    print(f"Created organization '{slug}'.")


if __name__ == "__main__":
    main()
