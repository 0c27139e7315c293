# booking/management/commands/purge_bookings.py
"""
Management command for deleting finished cancelled and rejected bookings.

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

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from booking.models import Booking, TERMINAL_STATUSES

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """
    Delete cancelled and rejected bookings that have ended.

    Usage:
        python manage.py purge_bookings
        python manage.py purge_bookings --days 30
        python manage.py purge_bookings --dry-run
    """

    help = 'Delete cancelled and rejected bookings whose end time has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=0,
            help='Keep bookings that ended within the last N days'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting'
        )

    def handle(self, *args, **options):
        days = options['days']
        if days < 0:
            raise CommandError('--days must not be negative')

        cutoff = timezone.now() - timedelta(days=days)
        queryset = Booking.objects.filter(status__in=TERMINAL_STATUSES, end_time__lt=cutoff)
        count = queryset.count()

        if options['dry_run']:
            for booking in queryset.select_related('resource', 'resource_part').order_by('end_time'):
                self.stdout.write(f"Would delete: {booking}")
            self.stdout.write(self.style.WARNING(f'{count} booking(s) would be deleted (dry run)'))
            return

        # Child bookings are detached first so cascades never reach active ones
        with transaction.atomic():
            ids = list(queryset.values_list('pk', flat=True))
            Booking.objects.filter(parent_booking_id__in=ids).exclude(pk__in=ids).update(parent_booking=None)
            Booking.objects.filter(pk__in=ids).delete()

        logger.info(f"Purged {count} finished cancelled/rejected booking(s) older than {cutoff.isoformat()}")
        self.stdout.write(self.style.SUCCESS(f'Deleted {count} booking(s)'))
