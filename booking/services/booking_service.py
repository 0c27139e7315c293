# booking/services/booking_service.py
"""
Booking creation and lifecycle service for Facility Booking.

A booking request is handled end to end in one place: license precondition,
duration checks, occurrence expansion, and then, inside a single
transaction holding a row lock on the resource, the conflict check for every
occurrence followed by the writes. Two requests for the same resource
therefore cannot both pass the check before either has written.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from booking.conflicts import ConflictDetector
from booking.exceptions import (
    BookingError, BookingValidationError, ExternalDenialError, NotFoundError
)
from booking.hierarchy import resolve_blocking_parts, validate_part_selection
from booking.models import Booking, BookingHistory, BookingStatus, Resource, ResourcePart
from booking.notifications import booking_notifications
from booking.pricing import calculate_booking_price
from booking.recurring import Recurrence, expand_occurrences
from booking.services.licensing import license_manager

logger = logging.getLogger(__name__)


class BookingRequest:
    """Validated input of one booking request."""

    def __init__(self, resource_id, start_time, end_time, title, part_ids=None,
                 description='', recurrence: Optional[Recurrence] = None,
                 contact_name='', contact_email='', contact_phone=''):
        self.resource_id = resource_id
        self.part_ids = list(dict.fromkeys(part_ids or []))
        self.start_time = start_time
        self.end_time = end_time
        self.title = title
        self.description = description
        self.recurrence = recurrence
        self.contact_name = contact_name
        self.contact_email = contact_email
        self.contact_phone = contact_phone

    @property
    def duration(self):
        return self.end_time - self.start_time


class BookingResult:
    def __init__(self, bookings: List[Booking]):
        self.bookings = bookings

    @property
    def count(self):
        return len(self.bookings)

    @property
    def message(self):
        if self.count > 1:
            return f"{self.count} bookings created"
        if self.bookings and self.bookings[0].status == BookingStatus.PENDING:
            return "Booking sent for approval"
        return "Booking created"


def get_resource(resource_id, for_update=False):
    queryset = Resource.objects.filter(is_active=True)
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=resource_id)
    except (Resource.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Resource not found")


def validate_duration(resource, start_time, end_time):
    """
    Check a requested slot against the resource's booking limits.

    Raises:
        BookingValidationError: for a non-positive duration, a duration
            outside the resource limits, or a start beyond the advance window
    """
    duration = end_time - start_time
    if duration <= timedelta(0):
        raise BookingValidationError("End time must be after start time.")

    minimum = resource.min_booking_duration
    if minimum is not None and duration < minimum:
        raise BookingValidationError(f"Minimum duration is {resource.min_booking_minutes} minutes")

    maximum = resource.max_booking_duration
    if maximum is not None and duration > maximum:
        raise BookingValidationError(f"Maximum duration is {resource.max_booking_minutes} minutes")

    if resource.advance_booking_days is not None:
        horizon = timezone.now() + timedelta(days=resource.advance_booking_days)
        if start_time > horizon:
            raise BookingValidationError(
                f"Bookings can be made at most {resource.advance_booking_days} days in advance"
            )


class BookingService:
    """Creates bookings and moves them through their lifecycle."""

    def __init__(self, notifications=None):
        self.notifications = notifications or booking_notifications

    def create_bookings(self, user, request: BookingRequest) -> BookingResult:
        """
        Create all bookings of a request, or none.

        Args:
            user: Requesting user
            request: BookingRequest

        Returns:
            BookingResult with one booking per (part x occurrence)

        Raises:
            ExternalDenialError, NotFoundError, BookingValidationError,
            BookingConflictError
        """
        allowed, message = license_manager.can_create_booking()
        if not allowed:
            raise ExternalDenialError(message)

        resource = get_resource(request.resource_id)
        validate_duration(resource, request.start_time, request.end_time)
        occurrences = expand_occurrences(request.start_time, request.end_time, request.recurrence)

        try:
            with transaction.atomic():
                resource = get_resource(request.resource_id, for_update=True)
                blocking_part_ids = resolve_blocking_parts(resource, request.part_ids)
                validate_part_selection(resource, request.part_ids)
                ConflictDetector.check_occurrences(resource, occurrences, blocking_part_ids)
                bookings = self._materialize(user, resource, request, occurrences)
        except BookingError:
            raise
        except ValidationError as e:
            raise BookingValidationError("; ".join(e.messages))
        except DatabaseError:
            logger.exception(
                f"Persisting bookings for resource {request.resource_id} failed; batch rolled back"
            )
            raise

        logger.info(
            f"Created {len(bookings)} booking(s) on resource {resource.pk} for user {user.pk}"
        )
        self.notifications.bookings_created(bookings)
        return BookingResult(bookings)

    def _materialize(self, user, resource, request, occurrences) -> List[Booking]:
        parts = {part.pk: part for part in ResourcePart.objects.filter(pk__in=request.part_ids)}
        targets = [parts[part_id] for part_id in request.part_ids] or [None]
        status = resource.initial_booking_status
        approved_at = timezone.now() if status == BookingStatus.APPROVED else None
        is_recurring = len(occurrences) > 1
        recurrence = request.recurrence

        created = []
        for part in targets:
            root = None
            for occurrence in occurrences:
                price = calculate_booking_price(user, resource, part, occurrence.start, occurrence.end)
                booking = Booking.objects.create(
                    resource=resource,
                    resource_part=part,
                    user=user,
                    title=request.title,
                    description=request.description,
                    start_time=occurrence.start,
                    end_time=occurrence.end,
                    status=status,
                    approved_at=approved_at,
                    is_recurring=is_recurring,
                    recurring_type=recurrence.type if recurrence and is_recurring else '',
                    recurring_end_date=recurrence.end_date if recurrence and is_recurring else None,
                    parent_booking=root,
                    total_price=None if price.is_free or not price.price else price.price,
                    contact_name=request.contact_name,
                    contact_email=request.contact_email,
                    contact_phone=request.contact_phone,
                )
                if root is None:
                    root = booking
                created.append(booking)
        return created

    def check_availability(self, resource_id, part_ids, start_time, end_time, recurrence=None):
        """
        Dry run of a booking request.

        Returns:
            Dict with the expanded occurrences and every conflict found
        """
        resource = get_resource(resource_id)
        occurrences = expand_occurrences(start_time, end_time, recurrence)
        blocking_part_ids = resolve_blocking_parts(resource, part_ids)

        conflicts = []
        for occurrence in occurrences:
            conflicts.extend(ConflictDetector.find_conflicts(resource, occurrence, blocking_part_ids))

        return {
            'resource': resource.pk,
            'available': not conflicts,
            'occurrences': [
                {'start_time': o.start.isoformat(), 'end_time': o.end.isoformat()}
                for o in occurrences
            ],
            'conflicts': [c.to_dict() for c in conflicts],
        }

    def _bookings_to_decide(self, booking, apply_to_all):
        if apply_to_all and booking.is_recurring:
            return list(
                Booking.objects.series(booking)
                .filter(status=BookingStatus.PENDING)
                .select_for_update()
            )
        return [booking]

    def _decide(self, booking, decided_by, new_status, note='', apply_to_all=False):
        if booking.status != BookingStatus.PENDING:
            raise BookingValidationError(f"Only pending bookings can be {new_status}")

        with transaction.atomic():
            bookings = self._bookings_to_decide(booking, apply_to_all)
            now = timezone.now()
            for item in bookings:
                old_status = item.status
                item.status = new_status
                item.status_note = note or ''
                if new_status == BookingStatus.APPROVED:
                    item.approved_by = decided_by
                    item.approved_at = now
                else:
                    item.approved_by = None
                    item.approved_at = None
                item.save()
                BookingHistory.objects.create(
                    booking=item,
                    user=decided_by,
                    action=new_status,
                    old_values={'status': old_status},
                    new_values={'status': new_status},
                    notes=note or '',
                )

        booking.refresh_from_db()
        logger.info(f"Booking {booking.pk} {new_status} by {decided_by.pk} ({len(bookings)} updated)")
        self.notifications.booking_decided(booking, count=len(bookings))
        return bookings

    def approve(self, booking, approved_by, note='', apply_to_all=False):
        """Approve a pending booking, or every pending booking of its series."""
        return self._decide(booking, approved_by, BookingStatus.APPROVED, note, apply_to_all)

    def reject(self, booking, rejected_by, note='', apply_to_all=False):
        """Reject a pending booking, or every pending booking of its series."""
        return self._decide(booking, rejected_by, BookingStatus.REJECTED, note, apply_to_all)

    def cancel(self, booking, cancelled_by, reason=''):
        """
        Cancel a booking.

        Owners may cancel their own active bookings that have not started;
        staff may cancel any active booking.
        """
        is_admin = cancelled_by.is_staff
        if not is_admin and booking.user_id != cancelled_by.pk:
            raise ExternalDenialError("You cannot cancel this booking")
        if not booking.is_active:
            raise BookingValidationError("This booking cannot be cancelled")
        if not is_admin and not booking.can_be_cancelled:
            raise BookingValidationError("Bookings that have started cannot be cancelled")

        old_status = booking.status
        with transaction.atomic():
            booking.status = BookingStatus.CANCELLED
            booking.status_note = reason or (
                "Cancelled by administrator" if is_admin else "Cancelled by user"
            )
            booking.save()
            BookingHistory.objects.create(
                booking=booking,
                user=cancelled_by,
                action='cancelled',
                old_values={'status': old_status},
                new_values={'status': booking.status},
                notes=booking.status_note,
            )

        logger.info(f"Booking {booking.pk} cancelled by {cancelled_by.pk}")
        self.notifications.booking_cancelled(booking, cancelled_by)
        return booking


booking_service = BookingService()
