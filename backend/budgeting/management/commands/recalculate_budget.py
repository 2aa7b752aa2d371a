from django.core.management.base import BaseCommand, CommandError

from budgeting.exceptions import BudgetPreconditionError
from budgeting.models import Budget
from budgeting.services.recalculation_service import HistoricalRecalculator


class Command(BaseCommand):
    help = "Rebuild a budget's period spending from transaction history"

    def add_arguments(self, parser):
        parser.add_argument("budget_id", type=int, help="Budget id")

    def handle(self, *args, **options):
        budget = Budget.objects.filter(pk=options["budget_id"]).first()
        if budget is None:
            raise CommandError(f"Budget {options['budget_id']} not found")

        try:
            result = HistoricalRecalculator().recalculate(budget)
        except BudgetPreconditionError as e:
            raise CommandError(e.message)

        self.stdout.write(f"Transactions processed: {result.transactions_processed}")
        self.stdout.write(f"Total spending found: {result.total_spending_found}")
        self.stdout.write(f"Periods with spending: {result.periods_updated}")
        self.stdout.write(f"Splits reassigned: {result.splits_reassigned}")

        for error in result.errors:
            self.stdout.write(self.style.ERROR(f"❌ {error}"))

        if result.success:
            self.stdout.write(self.style.SUCCESS(f"✅ Budget {budget.pk} recalculated"))
        else:
            self.stdout.write(self.style.WARNING(f"Budget {budget.pk} recalculated with errors"))
