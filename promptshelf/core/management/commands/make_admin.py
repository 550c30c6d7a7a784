from django.core.management.base import BaseCommand, CommandError

from core.exceptions import CatalogError
from core.services import db


class Command(BaseCommand):
    help = 'Grant (or with --revoke, remove) the admin role on a user profile by uid'

    def add_arguments(self, parser):
        parser.add_argument('uid', type=str, help='Firebase uid of the user')
        parser.add_argument('--revoke', action='store_true', help='Remove the admin role instead')

    def handle(self, *args, **options):
        uid = options['uid']
        is_admin = not options['revoke']

        try:
            db.set_admin(uid, is_admin)
        except CatalogError as e:
            raise CommandError(e.message)

        action = 'granted to' if is_admin else 'revoked from'
        self.stdout.write(self.style.SUCCESS(f'Admin role {action} {uid}'))
