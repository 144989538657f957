"""
Management command to remove duplicate cash sales (same client and grand total).
"""
from django.core.management.base import BaseCommand
from backend.sales.dedupe import cleanup_duplicate_cash_sales


class Command(BaseCommand):
    help = 'Remove duplicate cash sales, keeping the first one per client and amount'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show the duplicates without deleting anything',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        result = cleanup_duplicate_cash_sales(dry_run=dry_run)

        if not result.groups:
            self.stdout.write(self.style.SUCCESS("No duplicate cash sales found."))
            return

        for group in result.groups:
            self.stdout.write(f"\nKeeping {group.keep.sale_number} (KES {group.keep.grand_total})")
            for cash_sale in group.duplicates:
                self.stdout.write(self.style.NOTICE(f"  - duplicate {cash_sale.sale_number}"))

        if dry_run:
            self.stdout.write(self.style.WARNING(f"\n{result.deleted} cash sales would be removed."))
        else:
            self.stdout.write(self.style.SUCCESS(f"\nRemoved {result.deleted} duplicate cash sales."))
