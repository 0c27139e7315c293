# booking/recurring.py
"""
Recurring booking logic for Facility Booking.

Turns one booking request into the ordered list of concrete occurrences a
recurring series consists of. Nothing here touches the database.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from datetime import date, datetime, time
from typing import List, NamedTuple, Optional

from dateutil.relativedelta import relativedelta
from django.utils import timezone

from .exceptions import BookingValidationError
from .models import RecurrenceType

# Hard cap on the size of one series (a year of weekly bookings).
MAX_OCCURRENCES = 52

PERIODS = {
    RecurrenceType.WEEKLY: relativedelta(weeks=1),
    RecurrenceType.BIWEEKLY: relativedelta(weeks=2),
    RecurrenceType.MONTHLY: relativedelta(months=1),
}


class Occurrence(NamedTuple):
    start: datetime
    end: datetime


class Recurrence:
    """A recurrence descriptor: repeat every period until ``end_date`` (inclusive)."""

    def __init__(self, type, end_date):
        self.type = type
        self.end_date = end_date
        self.validate()

    def __repr__(self):
        return f"Recurrence(type={self.type!r}, end_date={self.end_date!r})"

    def __eq__(self, other):
        return (isinstance(other, Recurrence)
                and self.type == other.type and self.end_date == other.end_date)

    def validate(self):
        if self.type not in PERIODS:
            raise BookingValidationError(f"Invalid recurrence type: {self.type}")
        if isinstance(self.end_date, datetime):
            self.end_date = self.end_date.date()
        if not isinstance(self.end_date, date):
            raise BookingValidationError("Recurrence end date is required")

    def to_dict(self):
        """Convert descriptor to dictionary for JSON storage."""
        return {
            'type': str(self.type),
            'end_date': self.end_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data):
        """Create descriptor from dictionary."""
        end_date = data.get('end_date')
        if isinstance(end_date, str):
            try:
                end_date = date.fromisoformat(end_date)
            except ValueError:
                raise BookingValidationError(f"Invalid recurrence end date: {end_date}")
        return cls(type=data.get('type'), end_date=end_date)

    def period(self):
        """The step between two consecutive occurrences."""
        return PERIODS[self.type]

    def limit_for(self, start):
        """Last instant a series starting at ``start`` may begin an occurrence."""
        tz = start.tzinfo
        if tz is not None:
            start = timezone.localtime(start)
            tz = start.tzinfo
        return datetime.combine(self.end_date, time.max, tzinfo=tz)


def expand_occurrences(start, end, recurrence: Optional[Recurrence] = None) -> List[Occurrence]:
    """
    Expand a booking request into its occurrences.

    Each occurrence is the previous one advanced by one period and keeps the
    requested duration. Monthly steps clamp to the month end and carry the
    clamped day forward (Jan 31 -> Feb 29 -> Mar 29).

    Args:
        start: Start of the requested booking
        end: End of the requested booking
        recurrence: Optional Recurrence descriptor

    Returns:
        Chronologically ordered list of Occurrence, the request itself first
    """
    if end <= start:
        raise BookingValidationError("End time must be after start time.")

    occurrences = [Occurrence(start, end)]
    if recurrence is None:
        return occurrences

    duration = end - start
    limit = recurrence.limit_for(start)
    # Step in local wall-clock time so a series keeps its hour across DST
    current_start = timezone.localtime(start) if timezone.is_aware(start) else start

    while len(occurrences) < MAX_OCCURRENCES:
        current_start = current_start + recurrence.period()
        if current_start > limit:
            break
        occurrences.append(Occurrence(current_start, current_start + duration))

    for previous, current in zip(occurrences, occurrences[1:]):
        if current.start < previous.end:
            raise BookingValidationError(
                "Booking is longer than the recurrence interval; occurrences would overlap."
            )

    return occurrences
