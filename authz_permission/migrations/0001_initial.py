import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CasbinRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ptype", models.CharField(db_index=True, max_length=255)),
                ("v0", models.CharField(blank=True, max_length=255, null=True)),
                ("v1", models.CharField(blank=True, max_length=255, null=True)),
                ("v2", models.CharField(blank=True, max_length=255, null=True)),
                ("v3", models.CharField(blank=True, max_length=255, null=True)),
                ("v4", models.CharField(blank=True, max_length=255, null=True)),
                ("v5", models.CharField(blank=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Casbin Rule",
                "verbose_name_plural": "Casbin Rules",
                "db_table": "casbin_rule",
            },
        ),
    ]
