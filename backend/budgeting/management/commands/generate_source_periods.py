from datetime import date

from django.core.management.base import BaseCommand, CommandError

from budgeting.services.source_period_service import SourcePeriodService


class Command(BaseCommand):
    help = "Generate monthly, bi-monthly and weekly source periods for a range of years"

    def add_arguments(self, parser):
        parser.add_argument(
            "--start-year",
            type=int,
            default=date.today().year,
            help="First year to generate (default: current year)",
        )
        parser.add_argument(
            "--end-year",
            type=int,
            help="Last year to generate (default: start year + 1)",
        )

    def handle(self, *args, **options):
        start_year = options["start_year"]
        end_year = options.get("end_year") or start_year + 1

        try:
            summary = SourcePeriodService.generate_years(start_year, end_year)
        except ValueError as e:
            raise CommandError(str(e))

        self.stdout.write(f"Years: {start_year}-{end_year}")
        for period_type, count in sorted(summary["type_counts"].items()):
            self.stdout.write(f"  {period_type}: {count} created")
        self.stdout.write(
            self.style.SUCCESS(
                f"Created {summary['created']} source periods, skipped {summary['skipped']} existing"
            )
        )
