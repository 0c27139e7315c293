# booking/apps.py
"""
App configuration for the booking app.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from django.apps import AppConfig


class BookingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'booking'
    verbose_name = 'Facility Booking'

    def ready(self):
        """Initialize the app when Django starts."""
        import booking.signals  # noqa: F401
