from datetime import date

from django.core.management.base import BaseCommand, CommandError

from budgeting import triggers
from budgeting.exceptions import BudgetNotFoundError


class Command(BaseCommand):
    help = "Generate budget periods ahead for one budget or every budget of an owner"

    def add_arguments(self, parser):
        parser.add_argument(
            "--months",
            type=int,
            help="Months ahead of today to generate (default: BUDGETING['EXTEND_MONTHS_FORWARD'])",
        )
        parser.add_argument(
            "--from",
            dest="range_start",
            type=date.fromisoformat,
            help="Generate an explicit range starting at this date (YYYY-MM-DD)",
        )
        parser.add_argument(
            "--to",
            dest="range_end",
            type=date.fromisoformat,
            help="Last day of the explicit range (YYYY-MM-DD)",
        )
        target = parser.add_mutually_exclusive_group(required=True)
        target.add_argument("--owner", type=int, help="Owner (user) id")
        target.add_argument("--budget", type=int, help="Budget id")

    def handle(self, *args, **options):
        range_start = options.get("range_start")
        range_end = options.get("range_end")
        if (range_start is None) != (range_end is None):
            raise CommandError("--from and --to must be given together")
        if range_start is not None and options.get("months") is not None:
            raise CommandError("--months cannot be combined with --from/--to")

        try:
            if range_start is not None:
                summary = triggers.extend_periods_range(
                    range_start,
                    range_end,
                    budget_id=options.get("budget"),
                    owner_id=options.get("owner"),
                )
            else:
                summary = triggers.extend_periods(
                    budget_id=options.get("budget"),
                    owner_id=options.get("owner"),
                    months_forward=options.get("months"),
                )
        except BudgetNotFoundError as e:
            raise CommandError(e.message)
        except ValueError as e:
            raise CommandError(str(e))

        for error in summary["errors"]:
            self.stdout.write(self.style.ERROR(f"❌ {error}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"Extended {summary['budgets_processed']} budgets, "
                f"created {summary['periods_created']} periods"
            )
        )
