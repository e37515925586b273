from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from modules.orders.ingestion import default_ingestion_service


class Command(BaseCommand):
    help = "Pull the most recent storefront orders and upsert them locally."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=settings.ORDER_SYNC_PAGE_SIZE,
            help="Number of recent orders to fetch (1-250).",
        )

    def handle(self, *args, **options):
        limit = options["limit"]
        if not 1 <= limit <= 250:
            raise CommandError("--limit must be between 1 and 250.")

        self.stdout.write(f"Syncing up to {limit} orders...")
        result = default_ingestion_service().sync_recent_orders(limit=limit)
        if not result.success:
            raise CommandError(result.message)

        self.stdout.write(
            self.style.SUCCESS(
                f"Sync completed: synced={result.synced}, failed={result.failed}"
            )
        )
