"""
Management command to validate and print the configured GST rate table.
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from commerce.domain.gst import GSTRateTable, RateTableError


class Command(BaseCommand):
    help = 'Validate the GST rate table and print its entries'

    def add_arguments(self, parser):
        parser.add_argument(
            '--path',
            default=None,
            help='Rate table file to check (defaults to GST_RATE_TABLE_PATH)',
        )

    def handle(self, *args, **options):
        path = options['path'] or settings.GST_RATE_TABLE_PATH
        try:
            table = GSTRateTable.from_json(path)
        except OSError as e:
            raise CommandError(f'Cannot read rate table {path}: {e}') from e
        except (RateTableError, ValueError) as e:
            raise CommandError(f'Invalid rate table {path}: {e}') from e

        for entry in table:
            line = f'{entry.hsn_code:<8} {entry.rate:>3}%'
            if entry.has_threshold:
                line += f'  above ₹{entry.threshold_amount}: {entry.rate_above_threshold}%'
            if entry.description:
                line += f'  {entry.description}'
            self.stdout.write(line)

        self.stdout.write(
            self.style.SUCCESS(f'{len(table)} HSN entries, default rate {table.default_rate}%')
        )
