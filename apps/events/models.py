from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class LookupEntry(models.Model):
    """Shared fields for admin-managed reference tables."""

    name = models.CharField(max_length=100)
    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['name']

    def __str__(self):
        return self.name


class Category(LookupEntry):
    """Race category (e.g. 3K, 5K, 10K) and its registration fee."""

    name = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    description = models.TextField(blank=True)
    display_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'categories'
        ordering = ['display_order', 'name']
        verbose_name_plural = 'categories'


class ClaimLocation(LookupEntry):
    """Where race kits are handed out."""

    address = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = 'claim_locations'
        ordering = ['name']


class PaymentMethod(LookupEntry):
    """Account participants pay the registration fee into."""

    account_number = models.CharField(max_length=100)
    account_type = models.CharField(max_length=50, default='e-wallet')
    qr_image_url = models.URLField(max_length=500, blank=True)

    class Meta:
        db_table = 'payment_methods'
        ordering = ['name']


class Department(LookupEntry):

    class Meta:
        db_table = 'departments'
        ordering = ['name']


class Ministry(LookupEntry):

    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ministries'
    )

    class Meta:
        db_table = 'ministries'
        ordering = ['name']
        verbose_name_plural = 'ministries'


class Cluster(LookupEntry):

    class Meta:
        db_table = 'clusters'
        ordering = ['name']
