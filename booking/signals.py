# booking/signals.py
"""
Django signals for Facility Booking.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Booking, BookingHistory


def _snapshot(booking):
    return {
        'title': booking.title,
        'resource': booking.resource_id,
        'resource_part': booking.resource_part_id,
        'start_time': booking.start_time.isoformat(),
        'end_time': booking.end_time.isoformat(),
        'status': booking.status,
    }


@receiver(post_save, sender=Booking)
def log_booking_creation(sender, instance, created, **kwargs):
    """Log booking creation. Status changes are logged by the booking service."""
    if created:
        BookingHistory.objects.create(
            booking=instance,
            user=instance.user,
            action='created',
            new_values=_snapshot(instance),
        )


@receiver(post_delete, sender=Booking)
def log_booking_deletion(sender, instance, **kwargs):
    """Log booking deletion."""
    old_values = _snapshot(instance)
    old_values['id'] = instance.pk
    BookingHistory.objects.create(
        booking=None,
        user_id=instance.user_id,
        action='deleted',
        old_values=old_values,
    )
