from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from modules.orders.ingestion import default_ingestion_service


class Command(BaseCommand):
    help = "Delete every mirrored order (carrier errors included)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Confirm the deletion; nothing is removed without it.",
        )

    def handle(self, *args, **options):
        if not options["yes"]:
            raise CommandError("Refusing to delete all orders without --yes.")

        result = default_ingestion_service().clear_orders()
        if not result.success:
            raise CommandError(result.message)

        self.stdout.write(self.style.SUCCESS(f"Deleted {result.deleted} orders."))
