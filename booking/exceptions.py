# booking/exceptions.py
"""
Error taxonomy for booking requests.

Each error carries the HTTP status the API answers with, so views can turn
any BookingError into a response without knowing the concrete class.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""


class BookingError(Exception):
    """Base class for errors surfaced to the booking API caller."""
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class BookingValidationError(BookingError):
    """Missing field, non-positive duration or duration outside resource limits."""
    status_code = 400


class NotFoundError(BookingError):
    """Unknown resource or part."""
    status_code = 404


class BookingConflictError(BookingError):
    """An occurrence overlaps an existing active booking."""
    status_code = 409

    def __init__(self, message, conflict=None):
        super().__init__(message)
        self.conflict = conflict

    def to_dict(self):
        data = super().to_dict()
        if self.conflict is not None:
            data['conflict'] = self.conflict.to_dict()
        return data


class ExternalDenialError(BookingError):
    """The action is refused, by the license or by booking ownership rules."""
    status_code = 403
