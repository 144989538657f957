"""
Management command to repair quotations converted straight to a cash sale.

Those quotations skipped the sales order step; they are reset to pending and
taken through quotation -> sales order -> invoice / cash sale again.
"""
from django.core.management.base import BaseCommand
from backend.sales.workflow import fix_incorrectly_converted_quotations


class Command(BaseCommand):
    help = 'Reset quotations marked converted_to_cash_sale without a sales order and re-run the workflow'

    def add_arguments(self, parser):
        parser.add_argument(
            'quotation_numbers',
            nargs='*',
            help='Only repair these quotation numbers (default: every affected quotation)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be repaired without saving changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        results = fix_incorrectly_converted_quotations(
            quotation_numbers=options['quotation_numbers'] or None,
            dry_run=dry_run,
        )

        if not results:
            self.stdout.write(self.style.SUCCESS("No incorrectly converted quotations found."))
            return

        for quotation_number, steps in results.items():
            self.stdout.write(f"{quotation_number}: {' -> '.join(steps)}")

        self.stdout.write(self.style.SUCCESS(f"\n{'Would repair' if dry_run else 'Repaired'} {len(results)} quotations."))
