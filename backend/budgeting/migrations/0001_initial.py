import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


PERIOD_CHOICES = [
    ("weekly", "Weekly"),
    ("bi_monthly", "Bi-monthly"),
    ("monthly", "Monthly"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SourcePeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period_id", models.CharField(max_length=16, unique=True)),
                ("type", models.CharField(choices=PERIOD_CHOICES, max_length=10)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("year", models.PositiveIntegerField()),
                ("index", models.PositiveIntegerField()),
                ("metadata", models.JSONField(blank=True, default=dict)),
            ],
            options={
                "ordering": ["start_date", "type"],
                "indexes": [
                    models.Index(fields=["type", "start_date"], name="idx_source_type_start"),
                    models.Index(fields=["start_date"], name="idx_source_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Budget",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("period", models.CharField(choices=PERIOD_CHOICES, max_length=10)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("category_ids", models.JSONField(blank=True, default=list)),
                ("start_date", models.DateField()),
                ("is_ongoing", models.BooleanField(default=True)),
                ("budget_end_date", models.DateField(blank=True, null=True)),
                ("is_system_catch_all", models.BooleanField(default=False)),
                (
                    "alert_threshold",
                    models.PositiveSmallIntegerField(
                        default=80,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("periods_generated_until", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="budgets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["start_date", "id"],
                "indexes": [
                    models.Index(fields=["owner", "is_active"], name="idx_budget_owner_active"),
                    models.Index(fields=["owner", "is_system_catch_all"], name="idx_budget_owner_catch_all"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True), ("is_system_catch_all", True)),
                        fields=("owner",),
                        name="unique_active_catch_all_per_owner",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="BudgetPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period_type", models.CharField(choices=PERIOD_CHOICES, max_length=10)),
                ("period_start", models.DateField()),
                ("period_end", models.DateField()),
                ("allocated_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("spent", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("remaining", models.DecimalField(decimal_places=2, max_digits=14)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "budget",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.RESTRICT,
                        related_name="periods",
                        to="budgeting.budget",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="budget_periods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "source_period",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="budget_periods",
                        to="budgeting.sourceperiod",
                    ),
                ),
            ],
            options={
                "ordering": ["period_start", "period_type"],
                "indexes": [
                    models.Index(fields=["budget", "is_active"], name="idx_period_budget_active"),
                    models.Index(fields=["owner", "period_start", "period_end"], name="idx_period_owner_range"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("budget", "source_period"),
                        name="unique_budget_source_period",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=[("expense", "Expense"), ("income", "Income")], max_length=10)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved")],
                        default="approved",
                        max_length=10,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("transaction_date", models.DateField()),
                ("description", models.CharField(blank=True, max_length=255)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["owner", "transaction_date"], name="idx_owner_date"),
                    models.Index(
                        fields=["owner", "status", "type", "transaction_date"],
                        name="idx_owner_status_type_date",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionSplit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("category_id", models.CharField(max_length=100)),
                ("detailed_category_id", models.CharField(blank=True, default="", max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "budget",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="splits",
                        to="budgeting.budget",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="splits",
                        to="budgeting.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["transaction", "position", "id"],
                "indexes": [
                    models.Index(fields=["budget"], name="idx_split_budget"),
                ],
            },
        ),
    ]
