from decimal import Decimal
import random

from django.core.management.base import BaseCommand
from apps.registry.models import Apartment


class Command(BaseCommand):
    help = 'Seeds the database with sample apartment listings'

    def add_arguments(self, parser):
        parser.add_argument('--floors', type=int, default=5)
        parser.add_argument('--per-floor', type=int, default=4)

    def handle(self, *args, **options):
        blocks = ['A', 'B', 'C']
        created = 0

        self.stdout.write('Generating apartments...')

        for block in blocks:
            for floor in range(1, options['floors'] + 1):
                for index in range(1, options['per_floor'] + 1):
                    apartment_no = f"{floor}{index:02d}"
                    _, was_created = Apartment.objects.get_or_create(
                        block_name=block,
                        apartment_no=apartment_no,
                        defaults={
                            'floor_no': floor,
                            'rent': Decimal(random.randrange(800, 2500, 50)),
                        },
                    )
                    if was_created:
                        created += 1

        self.stdout.write(self.style.SUCCESS(f'Created {created} apartments'))
