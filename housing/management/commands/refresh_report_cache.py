from django.core.management.base import BaseCommand
from django.utils import timezone

from housing.services.reports import current_academic_year, dashboard, invalidate_reports


class Command(BaseCommand):
    help = "Invalidate cached report payloads and re-warm the dashboard."

    def add_arguments(self, parser):
        parser.add_argument('--academic-year', default=None, help='Academic year to warm (YYYY/YYYY)')

    def handle(self, *args, **options):
        year = options['academic_year'] or current_academic_year()
        invalidate_reports()
        dashboard(year)
        self.stdout.write(self.style.SUCCESS(f"Refreshed dashboard cache for {year} at {timezone.now()}"))
