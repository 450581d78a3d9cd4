# Initial schema for products, analyses and feedback

import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "name",
                    models.CharField(blank=True, help_text="Display name", max_length=500),
                ),
                (
                    "url",
                    models.URLField(
                        blank=True,
                        help_text="Source product page, empty for manual entries",
                        max_length=2000,
                        null=True,
                    ),
                ),
                (
                    "is_manual_entry",
                    models.BooleanField(
                        default=False,
                        help_text="Entered by hand rather than resolved from a URL",
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "products",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="product",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_manual_entry", False)),
                fields=("name", "url"),
                name="unique_product_name_url",
            ),
        ),
        migrations.CreateModel(
            name="Analysis",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "recommendation",
                    models.CharField(
                        choices=[
                            ("recommended", "Recommended"),
                            ("not_recommended", "Not Recommended"),
                        ],
                        max_length=20,
                    ),
                ),
                ("justification", models.TextField()),
                ("concerns", models.JSONField(blank=True, default=list)),
                ("ingredients_text", models.TextField()),
                (
                    "species",
                    models.CharField(
                        choices=[("cat", "Cat"), ("dog", "Dog")],
                        max_length=10,
                    ),
                ),
                ("breed", models.CharField(max_length=200)),
                (
                    "age",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                ("additional_info", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="analyses",
                        to="petfood.product",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pet_food_analyses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "analyses",
                "ordering": ["-created_at"],
                "verbose_name_plural": "analyses",
            },
        ),
        migrations.AddIndex(
            model_name="analysis",
            index=models.Index(
                fields=["user", "created_at"], name="analyses_user_created_idx"
            ),
        ),
        migrations.AddIndex(
            model_name="analysis",
            index=models.Index(
                fields=["product", "created_at"], name="analyses_product_created_idx"
            ),
        ),
        migrations.CreateModel(
            name="Feedback",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("is_positive", models.BooleanField()),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "analysis",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="feedback",
                        to="petfood.analysis",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pet_food_feedback",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "feedback",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="feedback",
            constraint=models.UniqueConstraint(
                fields=("analysis", "user"), name="unique_feedback_per_user"
            ),
        ),
    ]
