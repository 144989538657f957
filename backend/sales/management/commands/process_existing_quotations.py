"""
Management command to apply the payment progression rules to every paid quotation.

Useful after importing payments or when the payment monitor was disabled.
"""
from django.core.management.base import BaseCommand
from backend.core.cache_signals import suspend_cache_signals
from backend.core.cache_utils import invalidate_reports_cache
from backend.sales.workflow import process_all_quotations


class Command(BaseCommand):
    help = 'Progress paid quotations to sales orders, invoices and cash sales'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be converted without creating documents',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        with suspend_cache_signals():
            results = process_all_quotations(dry_run=dry_run)
        if not dry_run:
            invalidate_reports_cache()

        if not results:
            self.stdout.write(self.style.SUCCESS("All paid quotations are already up to date."))
            return

        for quotation_number, steps in results.items():
            line = f"{quotation_number}: {' -> '.join(steps)}"
            if any(step.startswith('error') for step in steps):
                self.stdout.write(self.style.ERROR(line))
            else:
                self.stdout.write(line)

        self.stdout.write(self.style.SUCCESS(f"\nProcessed {len(results)} quotations."))
