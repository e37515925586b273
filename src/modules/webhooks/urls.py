"""Webhook URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.webhooks.views import shopify_webhook

urlpatterns = [
    path("shopify", shopify_webhook, name="shopify-webhook"),
]
