from django.core.management.base import BaseCommand, CommandError

from core.exceptions import CatalogError
from core.services import db


class Command(BaseCommand):
    help = 'Recomputes category prompt/post counters from the prompts and blog_posts collections'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='Report drift without writing corrections')

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        self.stdout.write('Starting category count reconciliation...')

        try:
            corrections = db.reconcile_category_counts(dry_run=dry_run)
        except CatalogError as e:
            raise CommandError(f'Reconciliation failed: {e.message}')

        for correction in corrections:
            self.stdout.write(
                f"  {correction['collection']}/{correction['name']} {correction['field']}: "
                f"{correction['stored']} -> {correction['actual']}"
            )

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f'{len(corrections)} counters drifted (dry run)'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Corrected {len(corrections)} counters'))
