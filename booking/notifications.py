# booking/notifications.py
"""
Booking e-mail notifications for Facility Booking.

Bodies are rendered from the booking/email templates. Notifications are
queued with transaction.on_commit so nothing is sent for a rolled back
booking, and delivery runs off the request thread. A failed e-mail is
logged and otherwise ignored.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

import logging
import threading
from typing import List

from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from .models import Booking, BookingStatus

logger = logging.getLogger(__name__)


def _deliver(subject: str, html_message: str, recipients: List[str]):
    try:
        email = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_message).strip(),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=recipients
        )
        email.attach_alternative(html_message, "text/html")
        email.send()
        logger.info(f"Sent '{subject}' to {', '.join(recipients)}")
    except Exception:
        logger.exception(f"Failed to send '{subject}' to {', '.join(recipients)}")


def dispatch(subject: str, template: str, context: dict, recipients: List[str]):
    """Render ``booking/email/<template>.html`` and send it once the surrounding transaction commits."""
    recipients = [r for r in recipients if r]
    if not recipients:
        return

    html_message = render_to_string(f'booking/email/{template}.html', context)

    def send():
        if getattr(settings, 'BOOKING_NOTIFICATIONS_ASYNC', True):
            threading.Thread(
                target=_deliver, args=(subject, html_message, recipients), daemon=True
            ).start()
        else:
            _deliver(subject, html_message, recipients)

    transaction.on_commit(send)


def _when(booking: Booking) -> str:
    start = timezone.localtime(booking.start_time)
    end = timezone.localtime(booking.end_time)
    return f"{start:%A %d %B %Y} {start:%H:%M} - {end:%H:%M}"


class BookingNotifications:
    """Builds and queues the e-mails of the booking lifecycle."""

    def recipient_for(self, booking: Booking) -> str:
        return booking.contact_email or booking.user.email

    def admin_recipients(self) -> List[str]:
        emails = list(
            User.objects.filter(is_staff=True, is_active=True)
            .exclude(email='')
            .values_list('email', flat=True)
        )
        emails.extend(getattr(settings, 'BOOKING_ADMIN_EMAILS', []))
        return sorted(set(emails))

    def context_for(self, booking: Booking, count: int = 1) -> dict:
        return {
            'booking': booking,
            'user_name': booking.user.get_full_name() or booking.user.username,
            'when': _when(booking),
            'other_dates': count - 1,
        }

    def bookings_created(self, bookings: List[Booking]):
        """Confirm a new booking, or ask administrators to approve it."""
        if not bookings:
            return
        booking = bookings[0]
        context = self.context_for(booking, len(bookings))

        if booking.status == BookingStatus.APPROVED:
            dispatch(f"Booking confirmed: {booking.target_name}", 'booking_confirmed', context,
                     [self.recipient_for(booking)])
        else:
            dispatch(f"Booking received: {booking.target_name}", 'booking_received', context,
                     [self.recipient_for(booking)])
            dispatch(f"Approval required: {booking.target_name}", 'approval_required', context,
                     self.admin_recipients())

    def booking_decided(self, booking: Booking, count: int = 1):
        """Tell the owner a booking was approved or rejected."""
        if booking.status == BookingStatus.APPROVED:
            subject = f"Booking approved: {booking.target_name}"
        else:
            subject = f"Booking rejected: {booking.target_name}"
        dispatch(subject, 'booking_decided', self.context_for(booking, count), [self.recipient_for(booking)])

    def booking_cancelled(self, booking: Booking, cancelled_by):
        """Tell the other party about a cancellation."""
        context = self.context_for(booking)
        if cancelled_by != booking.user:
            dispatch(f"Booking cancelled: {booking.target_name}", 'cancelled_by_admin', context,
                     [self.recipient_for(booking)])
        else:
            dispatch(f"Booking cancelled by user: {booking.target_name}", 'cancelled_by_user', context,
                     self.admin_recipients())


booking_notifications = BookingNotifications()
