from django.core.management.base import BaseCommand, CommandError

from core.exceptions import CatalogError
from core.services import db


class Command(BaseCommand):
    help = 'Seeds the default prompt categories into an empty categories collection'

    def handle(self, *args, **options):
        try:
            created = db.seed_default_categories()
        except CatalogError as e:
            raise CommandError(f'Seeding failed: {e.message}')

        if not created:
            self.stdout.write(self.style.WARNING('Categories already exist, nothing seeded'))
            return
        for name in created:
            self.stdout.write(f'  + {name}')
        self.stdout.write(self.style.SUCCESS(f'Seeded {len(created)} categories'))
