"""
Motorcycle model for the dealership financing engine.

Inventory state lives in the dealership application; the financing
engine only needs to know a motorcycle exists before financing it.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Motorcycle(models.Model):
    """A motorcycle unit in a dealership's inventory."""

    brand = models.CharField(
        max_length=100,
        help_text="Manufacturer name."
    )
    model = models.CharField(
        max_length=100,
        help_text="Model name."
    )
    year = models.PositiveIntegerField(
        help_text="Model year."
    )
    chassis_number = models.CharField(
        max_length=64,
        unique=True,
        help_text="Chassis (VIN) number."
    )
    retail_price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="List price of the unit.",
    )
    organization_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Organization (dealership) that owns this unit."
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'motorcycles'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.brand} {self.model} {self.year} ({self.chassis_number})"
