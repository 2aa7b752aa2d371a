from django.core.management.base import BaseCommand, CommandError

from budgeting import triggers
from budgeting.models import Budget


class Command(BaseCommand):
    help = "Delete and rebuild the periods of one budget or every budget of an owner"

    def add_arguments(self, parser):
        target = parser.add_mutually_exclusive_group(required=True)
        target.add_argument("--owner", type=int, help="Owner (user) id")
        target.add_argument("--budget", type=int, help="Budget id")

    def handle(self, *args, **options):
        budgets = Budget.objects.filter(is_active=True)
        if options.get("budget") is not None:
            budgets = budgets.filter(pk=options["budget"])
            if not budgets.exists():
                raise CommandError(f"Budget {options['budget']} not found")
        else:
            budgets = budgets.filter(owner_id=options["owner"])

        failures = 0
        for budget in budgets:
            generation, recalculation = triggers.regenerate_budget_periods(budget)
            for error in generation.errors + recalculation.errors:
                failures += 1
                self.stdout.write(self.style.ERROR(f"❌ Budget {budget.pk}: {error}"))
            self.stdout.write(
                f"Budget {budget.pk}: {generation.periods_created} periods, "
                f"spending {recalculation.total_spending_found}"
            )

        if failures:
            self.stdout.write(self.style.WARNING(f"Regeneration finished with {failures} errors"))
        else:
            self.stdout.write(self.style.SUCCESS("✅ Budget periods regenerated"))
