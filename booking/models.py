# booking/models.py
"""
Core models for Facility Booking.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from datetime import timedelta

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

# Legacy sentinels for "no limit" still found in imported data.
UNLIMITED_MIN_MINUTES = 0
UNLIMITED_MAX_MINUTES = 9999

PRICING_MODELS = [
    ('FREE', 'Free'),
    ('HOURLY', 'Per hour'),
    ('DAILY', 'Per day'),
    ('FIXED', 'Fixed price'),
    ('FIXED_DURATION', 'Fixed price for a fixed duration'),
]


class BookingStatus(models.TextChoices):
    PENDING = 'pending', 'Pending Approval'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    CANCELLED = 'cancelled', 'Cancelled'


TERMINAL_STATUSES = (BookingStatus.REJECTED, BookingStatus.CANCELLED)


class RecurrenceType(models.TextChoices):
    WEEKLY = 'weekly', 'Weekly'
    BIWEEKLY = 'biweekly', 'Every second week'
    MONTHLY = 'monthly', 'Monthly'


class Resource(models.Model):
    """A bookable facility."""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)
    requires_approval = models.BooleanField(default=False)
    min_booking_minutes = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="Shortest allowed booking. Empty (or 0) means no limit."
    )
    max_booking_minutes = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="Longest allowed booking. Empty (or 9999) means no limit."
    )
    advance_booking_days = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="How many days ahead bookings may start. Empty means no limit."
    )

    # Pricing
    pricing_model = models.CharField(max_length=20, choices=PRICING_MODELS, default='FREE')
    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    fixed_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    fixed_price_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes covered by the fixed price")
    free_for_roles = models.JSONField(default=list, blank=True, help_text='Roles that book for free: "admin", "user"')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'booking_resource'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def min_booking_duration(self):
        """Minimum booking length as a timedelta, or None when unlimited."""
        if self.min_booking_minutes in (None, UNLIMITED_MIN_MINUTES):
            return None
        return timedelta(minutes=self.min_booking_minutes)

    @property
    def max_booking_duration(self):
        """Maximum booking length as a timedelta, or None when unlimited."""
        if self.max_booking_minutes in (None, UNLIMITED_MAX_MINUTES):
            return None
        return timedelta(minutes=self.max_booking_minutes)

    @property
    def initial_booking_status(self):
        if self.requires_approval:
            return BookingStatus.PENDING
        return BookingStatus.APPROVED


class ResourcePart(models.Model):
    """A bookable sub-unit of a resource, e.g. one half of a hall."""
    resource = models.ForeignKey(Resource, on_delete=models.CASCADE, related_name='parts')
    parent = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children'
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    # Pricing overrides; unset fields fall back to the resource
    pricing_model = models.CharField(max_length=20, choices=PRICING_MODELS, blank=True)
    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    fixed_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    fixed_price_duration = models.PositiveIntegerField(null=True, blank=True)
    free_for_roles = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'booking_resourcepart'
        ordering = ['name']

    def __str__(self):
        return f"{self.resource.name} → {self.name}"

    def clean(self):
        """Validate the parent link."""
        if self.parent_id is None:
            return
        if self.parent.resource_id != self.resource_id:
            raise ValidationError({'parent': "Parent part must belong to the same resource."})

        from .hierarchy import would_create_cycle
        if would_create_cycle(self, self.parent):
            raise ValidationError({'parent': "A part cannot be its own ancestor."})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class BookingQuerySet(models.QuerySet):
    def active(self):
        """Bookings that still hold their time slot."""
        return self.exclude(status__in=TERMINAL_STATUSES)

    def overlapping(self, start, end):
        """Bookings whose [start_time, end_time) intersects [start, end)."""
        return self.filter(start_time__lt=end, end_time__gt=start)

    def series(self, booking):
        """All bookings sharing a recurring series with ``booking``."""
        root_id = booking.parent_booking_id or booking.pk
        return self.filter(models.Q(pk=root_id) | models.Q(parent_booking_id=root_id))


class Booking(models.Model):
    """Individual booking records."""
    resource = models.ForeignKey(Resource, on_delete=models.CASCADE, related_name='bookings')
    resource_part = models.ForeignKey(
        ResourcePart, on_delete=models.CASCADE, null=True, blank=True, related_name='bookings'
    )
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bookings')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING)
    status_note = models.TextField(blank=True)

    is_recurring = models.BooleanField(default=False)
    recurring_type = models.CharField(max_length=20, choices=RecurrenceType.choices, blank=True)
    recurring_end_date = models.DateField(null=True, blank=True)
    parent_booking = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='child_bookings'
    )

    total_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    contact_name = models.CharField(max_length=200, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_bookings')
    approved_at = models.DateTimeField(null=True, blank=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        db_table = 'booking_booking'
        ordering = ['start_time']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F('start_time')),
                name='booking_end_after_start'
            )
        ]
        indexes = [
            models.Index(fields=['resource', 'start_time', 'end_time'], name='booking_resource_span_idx'),
        ]

    def __str__(self):
        return f"{self.title} - {self.target_name} ({self.start_time.strftime('%Y-%m-%d %H:%M')})"

    def clean(self):
        """Validate booking constraints."""
        if self.start_time and timezone.is_naive(self.start_time):
            self.start_time = timezone.make_aware(self.start_time)
        if self.end_time and timezone.is_naive(self.end_time):
            self.end_time = timezone.make_aware(self.end_time)

        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError("End time must be after start time.")

        if self.resource_part_id and self.resource_part.resource_id != self.resource_id:
            raise ValidationError({'resource_part': "Part does not belong to the booked resource."})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def duration(self):
        """Return booking duration as timedelta."""
        return self.end_time - self.start_time

    @property
    def is_active(self):
        return self.status not in TERMINAL_STATUSES

    @property
    def can_be_cancelled(self):
        """Active bookings that have not started yet."""
        return self.is_active and self.start_time > timezone.now()

    @property
    def target_name(self):
        """Human readable name of what is booked."""
        if self.resource_part_id:
            return f"{self.resource.name} → {self.resource_part.name}"
        return self.resource.name


class BookingHistory(models.Model):
    """Audit trail for booking changes."""
    booking = models.ForeignKey(Booking, on_delete=models.SET_NULL, null=True, blank=True, related_name='history')
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=50)
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'booking_bookinghistory'
        ordering = ['-timestamp']
        verbose_name_plural = 'booking history'

    def __str__(self):
        return f"{self.action} ({self.timestamp:%Y-%m-%d %H:%M})"
