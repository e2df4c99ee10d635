from django.core.management.base import BaseCommand
from apps.identity.models import User, UserRole


class Command(BaseCommand):
    help = 'Seeds the database with an administrator and sample users'

    def add_arguments(self, parser):
        parser.add_argument('--admin-email', default='admin@buildiq.test')

    def handle(self, *args, **options):
        users = [
            {'email': options['admin_email'], 'name': 'Building Admin', 'role': UserRole.ADMIN},
            {'email': 'resident@buildiq.test', 'name': 'Sample Resident', 'role': UserRole.USER},
            {'email': 'visitor@buildiq.test', 'name': 'Sample Visitor', 'role': UserRole.USER},
        ]

        for u in users:
            user, created = User.objects.get_or_create(
                email=u['email'],
                defaults={'name': u['name'], 'role': u['role']},
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'Created user: {user.email} (Role: {user.role})'))
            else:
                self.stdout.write(self.style.WARNING(f'User exists: {user.email} (Role: {user.role})'))
