"""Processed-webhook markers.

One row per delivery id the intake has fully processed.  A row is written
once, after the order upsert succeeded, and is never updated.
"""

from __future__ import annotations

from django.db import models


class ProcessedWebhook(models.Model):
    delivery_id = models.CharField(max_length=255, primary_key=True)
    topic = models.CharField(max_length=64)
    shop_domain = models.CharField(max_length=255)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "processed_webhooks"
        ordering = ["-processed_at"]

    def __str__(self) -> str:
        return f"{self.topic} {self.delivery_id}"
