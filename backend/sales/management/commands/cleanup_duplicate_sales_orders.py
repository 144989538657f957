"""
Management command to merge duplicate sales orders.

Orders sharing client, grand total and original quotation number are
duplicates; the earliest is kept and invoices/cash sales are moved to it.
"""
from django.core.management.base import BaseCommand
from backend.sales.dedupe import merge_duplicate_sales_orders


class Command(BaseCommand):
    help = 'Merge duplicate sales orders, keeping the earliest order of each group'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show the duplicate groups without deleting anything',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        result = merge_duplicate_sales_orders(dry_run=dry_run)

        if not result.groups:
            self.stdout.write(self.style.SUCCESS("No duplicate sales orders found."))
            return

        for group in result.groups:
            self.stdout.write(f"\nKeeping {group.keep.order_number} (quotation {group.keep.original_quotation_number or '-'})")
            for order in group.duplicates:
                self.stdout.write(self.style.NOTICE(f"  - duplicate {order.order_number} ({order.date_created:%Y-%m-%d %H:%M})"))

        if dry_run:
            self.stdout.write(self.style.WARNING(f"\n{result.deleted} sales orders would be removed."))
        else:
            self.stdout.write(self.style.SUCCESS(
                f"\nRemoved {result.deleted} duplicate sales orders "
                f"({result.repointed_invoices} invoices, {result.repointed_cash_sales} cash sales re-linked)."
            ))
        if result.removed_invoices or result.removed_cash_sales:
            self.stdout.write(self.style.WARNING(
                f"{'Would remove' if dry_run else 'Removed'} {result.removed_invoices} conflicting invoices "
                f"and {result.removed_cash_sales} conflicting cash sales."
            ))
