"""
Management command to check loyalty balances against the points ledger.
Each account's balance must equal the sum of its ledger entries.
"""

from typing import Any

from django.core.management.base import BaseCommand, CommandParser

from apps.loyalty.models import LoyaltyAccount
from apps.loyalty.services import PointsLedger


class Command(BaseCommand):
    help = "Verify that every loyalty balance equals the sum of its ledger entries"

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Reset drifted balances to their ledger total",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        discrepancies = PointsLedger.find_discrepancies()

        if not discrepancies:
            self.stdout.write(self.style.SUCCESS("All loyalty balances match the points ledger."))
            return

        self.stdout.write(self.style.WARNING(f"Found {len(discrepancies)} drifted accounts:"))
        for entry in discrepancies:
            self.stdout.write(
                f"  - {entry['optician']}: balance {entry['balance']}, ledger total {entry['ledger_total']}"
            )

        if not options["fix"]:
            return

        fixed_count = 0
        for entry in discrepancies:
            account = LoyaltyAccount.objects.get(pk=entry["account_id"])
            result = PointsLedger.recompute_balance(account)
            if result.is_ok():
                fixed_count += 1
            else:
                self.stdout.write(self.style.ERROR(f"  ! {entry['optician']}: {result.unwrap_err().message}"))

        self.stdout.write(self.style.SUCCESS(f"Successfully recomputed {fixed_count} balances."))
