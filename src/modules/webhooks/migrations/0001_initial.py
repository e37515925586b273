from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ProcessedWebhook",
            fields=[
                (
                    "delivery_id",
                    models.CharField(max_length=255, primary_key=True, serialize=False),
                ),
                ("topic", models.CharField(max_length=64)),
                ("shop_domain", models.CharField(max_length=255)),
                ("processed_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "processed_webhooks",
                "ordering": ["-processed_at"],
            },
        ),
    ]
