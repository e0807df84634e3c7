"""
Postelma access core - demo entry point.

Seeds a workspace and walks through the role and plan decisions a
dashboard would ask for. Run with `python -m postelma.main` or the
`postelma-demo` script.
"""

from __future__ import annotations

import asyncio
import logging

from postelma.auth import Capability, get_session_context
from postelma.config import get_settings
from postelma.config_loader import load_seed
from postelma.core.errors import AccountLimitReachedError, PlatformNotAvailableError
from postelma.core.models import Plan
from postelma.plans import PLAN_ORDER, entitlement_for
from postelma.services import AccountProvisioning, UserDirectory
from postelma.storage import create_storage


async def demo():
    """Seed storage, resolve sessions and try a few plan-gated actions."""
    settings = get_settings()
    storage = create_storage(settings)

    print("=" * 60)
    print("POSTELMA ACCESS DEMO")
    print("=" * 60)
    print()

    counts = await load_seed(storage, settings.seed_file or None)
    print(f"  ✓ Loaded {counts['users']} users")
    print(f"  ✓ Loaded {counts['social_accounts']} social accounts")
    print()

    directory = UserDirectory(storage, settings)
    print("Team:")
    for user in await directory.list_users():
        ctx = await get_session_context(user.id, storage, plan=Plan.STARTER)
        granted = sorted(c.value for c in ctx.permissions.granted()) if ctx.permissions else []
        print(f"  • {user.name} ({user.role.value}): {', '.join(granted) or 'no access'}")
    print()

    print("Plans:")
    for plan in PLAN_ORDER:
        entitlement = entitlement_for(plan)
        print(f"  • {plan.value}: {entitlement.max_accounts} accounts, "
              f"{len(entitlement.features)} features")
    print()

    provisioning = AccountProvisioning(storage)
    owner = await get_session_context("user_owner", storage, plan=Plan.STARTER)
    print(f"Owner can manage accounts: {owner.can(Capability.CAN_MANAGE_ACCOUNTS)}")

    for platform in ("linkedin", "tiktok"):
        try:
            account = await provisioning.connect_account(owner, platform, f"demo_{platform}")
            print(f"  ✓ Connected {account.platform.value}")
        except PlatformNotAvailableError as e:
            print(f"  ✗ {e.message}")
        except AccountLimitReachedError as e:
            print(f"  ✗ {e.message}")

    print()
    print("Connection status:")
    for status in await provisioning.connection_statuses(owner.plan):
        marker = "✓" if status.is_available else "✗"
        print(f"  {marker} {status.platform.value}: "
              f"{status.account_count}/{status.max_accounts}")
    print()
    print("=" * 60)


def main():
    """Main entry point."""
    logging.basicConfig(level=get_settings().log_level)
    asyncio.run(demo())


if __name__ == "__main__":
    main()
