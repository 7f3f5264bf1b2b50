#!/usr/bin/env python3
"""
Generate Obligations Script.

Generates the rent and recurring obligations of a month and, optionally,
rebuilds owner balances from the payment history. Useful to backfill past
months or to repair balances after manual database edits.

Usage:
    # Generate the current month for every account
    python -m scripts.generate_obligations

    # Backfill a month for one account
    python -m scripts.generate_obligations --month 2026-03 --user-id USER_ID

    # Also rebuild owner balances
    python -m scripts.generate_obligations --user-id USER_ID --recalculate-balances
"""
import argparse
import asyncio
from datetime import date
from typing import Optional

from sqlalchemy import select

from inmodash.database import async_session_maker
from inmodash.data.models import User
from inmodash.services.distribution import parse_month
from inmodash.services.obligations import ObligationService


async def run(month: date, user_id: Optional[str], recalculate_balances: bool) -> None:
    async with async_session_maker() as db:
        if user_id:
            user_ids = [user_id]
        else:
            result = await db.execute(select(User.id))
            user_ids = [row[0] for row in result.fetchall()]

        print("\n" + "=" * 60)
        print(f"GENERATE OBLIGATIONS - {month:%Y-%m}")
        print("=" * 60)

        for uid in user_ids:
            service = ObligationService(db, uid)
            summary = await service.generate_obligations(month)
            print(
                f"\nUser {uid}: {summary['generated']} generated "
                f"({summary['rent_generated']} rent, {summary['recurring_generated']} recurring), "
                f"{summary['skipped']} skipped"
            )
            for error in summary["errors"]:
                print(f"  ✗ {error}")

            if recalculate_balances:
                for balance in await service.recalculate_all_owner_balances():
                    print(
                        f"  Owner {balance['owner_name']}: "
                        f"{balance['previous_balance']} -> {balance['new_balance']}"
                    )


def main():
    parser = argparse.ArgumentParser(description="Generate monthly obligations")
    parser.add_argument("--month", help="Month to generate (YYYY-MM), defaults to the current month")
    parser.add_argument("--user-id", help="Limit to one account")
    parser.add_argument(
        "--recalculate-balances",
        action="store_true",
        help="Rebuild owner balances after generating",
    )
    args = parser.parse_args()

    month = parse_month(args.month) if args.month else date.today().replace(day=1)
    asyncio.run(run(month, args.user_id, args.recalculate_balances))


if __name__ == "__main__":
    main()
