"""Carrier identifiers and defaults shared by gateways and orders."""

from decimal import Decimal

from django.db import models


class Carrier(models.TextChoices):
    DELHIVERY = "DELHIVERY", "Delhivery"
    SHIPROCKET = "SHIPROCKET", "Shiprocket"


# Recorded when a gateway gives no more specific reason.
DEFAULT_ERROR_CODE = "API_ERROR"

# Parcel defaults used when booking (cm / kg); line items carry no dimensions.
DEFAULT_PARCEL_LENGTH_CM = 10
DEFAULT_PARCEL_BREADTH_CM = 10
DEFAULT_PARCEL_HEIGHT_CM = 10
DEFAULT_PARCEL_WEIGHT_KG = Decimal("0.5")
