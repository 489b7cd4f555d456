"""
Client model for the dealership financing engine.

Clients are owned by the surrounding dealership application; the
financing engine only reads them to confirm they exist.
"""

from django.db import models


class Client(models.Model):
    """A dealership customer who can be financed through a current account."""

    first_name = models.CharField(
        max_length=100,
        help_text="Client's first name."
    )
    last_name = models.CharField(
        max_length=100,
        help_text="Client's last name."
    )
    email = models.EmailField(
        blank=True,
        help_text="Client's contact email."
    )
    phone = models.CharField(
        max_length=30,
        blank=True,
        help_text="Client's phone number."
    )
    organization_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Organization (dealership) that owns this client."
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clients'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.first_name} {self.last_name} (ID: {self.pk})"

    @property
    def full_name(self):
        """Returns the client's full name."""
        return f"{self.first_name} {self.last_name}"
