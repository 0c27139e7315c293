# booking/conflicts.py
"""
Booking conflict detection for Facility Booking.

Intervals are half-open: a booking ending at 11:00 does not clash with one
starting at 11:00.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

import logging

from django.db.models import Q
from django.utils import timezone

from .exceptions import BookingConflictError
from .hierarchy import blocking_set, load_part_arena
from .models import Booking

logger = logging.getLogger(__name__)

WHOLE_FACILITY = "the whole facility"


def overlaps(start1, end1, start2, end2):
    """Half-open interval overlap test."""
    return start1 < end2 and start2 < end1


class BookingConflict:
    """Represents a clash between a requested occurrence and an existing booking."""

    def __init__(self, occurrence, booking):
        self.occurrence = occurrence
        self.booking = booking
        self.overlap_start = max(occurrence.start, booking.start_time)
        self.overlap_end = min(occurrence.end, booking.end_time)

    @property
    def target_name(self):
        """Name of what is already booked: a part, or the whole facility."""
        if self.booking.resource_part_id:
            return f'"{self.booking.resource_part.name}"'
        return WHOLE_FACILITY

    @property
    def date(self):
        start = self.occurrence.start
        if timezone.is_aware(start):
            start = timezone.localtime(start)
        return start.date()

    def __str__(self):
        return (f"Conflict on {self.date.isoformat()}: "
                f"{self.target_name} is already booked in this period")

    def to_dict(self):
        """Convert conflict to dictionary for JSON serialization."""
        return {
            'date': self.date.isoformat(),
            'requested_start': self.occurrence.start.isoformat(),
            'requested_end': self.occurrence.end.isoformat(),
            'booking': {
                'id': self.booking.pk,
                'title': self.booking.title,
                'resource_part': self.booking.resource_part_id,
                'start_time': self.booking.start_time.isoformat(),
                'end_time': self.booking.end_time.isoformat(),
                'status': self.booking.status,
            },
            'target': self.target_name.strip('"'),
            'overlap_start': self.overlap_start.isoformat(),
            'overlap_end': self.overlap_end.isoformat(),
        }


class ConflictDetector:
    """Detects clashes between requested occurrences and active bookings."""

    @staticmethod
    def candidate_bookings(resource, start, end, blocking_part_ids, exclude_booking_ids=None):
        """
        Active bookings on ``resource`` that a request over [start, end) clashes with.

        Args:
            resource: Resource instance
            start: Start of the requested occurrence
            end: End of the requested occurrence
            blocking_part_ids: Blocking set of the request; empty for a
                whole-resource request, which clashes with every booking
            exclude_booking_ids: Booking IDs to leave out of the check

        Returns:
            QuerySet of clashing bookings, earliest first
        """
        queryset = (
            Booking.objects.active()
            .overlapping(start, end)
            .filter(resource=resource)
            .select_related('resource_part')
        )
        if blocking_part_ids:
            queryset = queryset.filter(
                Q(resource_part__isnull=True) | Q(resource_part_id__in=blocking_part_ids)
            )
        if exclude_booking_ids:
            queryset = queryset.exclude(pk__in=exclude_booking_ids)
        return queryset.order_by('start_time', 'pk')

    @staticmethod
    def find_conflicts(resource, occurrence, blocking_part_ids, exclude_booking_ids=None):
        """Return BookingConflict instances for one occurrence."""
        bookings = ConflictDetector.candidate_bookings(
            resource, occurrence.start, occurrence.end, blocking_part_ids, exclude_booking_ids
        )
        return [BookingConflict(occurrence, booking) for booking in bookings]

    @staticmethod
    def first_conflict(resource, occurrence, blocking_part_ids, exclude_booking_ids=None):
        booking = ConflictDetector.candidate_bookings(
            resource, occurrence.start, occurrence.end, blocking_part_ids, exclude_booking_ids
        ).first()
        if booking is None:
            return None
        return BookingConflict(occurrence, booking)

    @staticmethod
    def check_occurrences(resource, occurrences, blocking_part_ids, exclude_booking_ids=None):
        """
        Check every occurrence of a request.

        Raises:
            BookingConflictError: for the earliest occurrence that clashes
        """
        for occurrence in occurrences:
            conflict = ConflictDetector.first_conflict(
                resource, occurrence, blocking_part_ids, exclude_booking_ids
            )
            if conflict is not None:
                logger.info(
                    "Booking request on resource %s rejected: %s (existing booking %s)",
                    resource.pk, conflict, conflict.booking.pk
                )
                raise BookingConflictError(str(conflict), conflict=conflict)

    @staticmethod
    def find_resource_conflicts(resource, start_time, end_time):
        """
        Find pairs of active bookings on a resource that clash with each other.

        Used to audit data written before conflict checks were enforced.

        Returns:
            List of (booking1, booking2) tuples
        """
        arena = load_part_arena(resource)
        bookings = list(
            Booking.objects.active()
            .overlapping(start_time, end_time)
            .filter(resource=resource)
            .order_by('start_time', 'pk')
        )

        def parts_clash(booking1, booking2):
            if booking1.resource_part_id is None or booking2.resource_part_id is None:
                return True
            return booking2.resource_part_id in blocking_set(booking1.resource_part_id, arena)

        conflicts = []
        for i, booking1 in enumerate(bookings):
            for booking2 in bookings[i+1:]:
                if (overlaps(booking1.start_time, booking1.end_time,
                             booking2.start_time, booking2.end_time)
                        and parts_clash(booking1, booking2)):
                    conflicts.append((booking1, booking2))
        return conflicts
