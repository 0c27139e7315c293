"""Test cases for booking conflict detection."""
from datetime import datetime, timedelta

from django.test import TestCase
from django.utils import timezone

from booking.conflicts import BookingConflict, ConflictDetector, overlaps
from booking.exceptions import BookingConflictError
from booking.hierarchy import resolve_blocking_parts
from booking.models import BookingStatus
from booking.recurring import Occurrence
from booking.tests.factories import BookingFactory, ResourceFactory, ResourcePartFactory


def local(*args):
    return timezone.make_aware(datetime(*args))


class TestOverlaps(TestCase):

    def test_half_open_intervals(self):
        t = local(2024, 1, 10, 11, 0)
        hour = timedelta(hours=1)
        self.assertFalse(overlaps(t - hour, t, t, t + hour))
        self.assertFalse(overlaps(t, t + hour, t - hour, t))
        self.assertTrue(overlaps(t - hour, t + timedelta(milliseconds=1), t, t + hour))
        self.assertTrue(overlaps(t, t + hour, t, t + hour))


class TestConflictDetection(TestCase):
    """Test booking conflict detection logic."""

    def setUp(self):
        self.resource = ResourceFactory()
        self.hall = ResourcePartFactory(resource=self.resource, name='Hall')
        self.half_a = ResourcePartFactory(resource=self.resource, name='Half A', parent=self.hall)
        self.half_b = ResourcePartFactory(resource=self.resource, name='Half B', parent=self.hall)
        self.court = ResourcePartFactory(resource=self.resource, name='Court', parent=self.half_a)
        self.start = local(2024, 1, 10, 10, 0)
        self.end = local(2024, 1, 10, 11, 0)

    def book(self, part=None, start=None, end=None, **kwargs):
        return BookingFactory(
            resource=self.resource,
            resource_part=part,
            start_time=start or self.start,
            end_time=end or self.end,
            **kwargs
        )

    def conflicts_for(self, part, start, end):
        blocking = resolve_blocking_parts(self.resource, [part.pk] if part else [])
        return ConflictDetector.find_conflicts(self.resource, Occurrence(start, end), blocking)

    def test_no_conflicts_different_resources(self):
        BookingFactory(start_time=self.start, end_time=self.end)
        self.assertEqual(self.conflicts_for(None, self.start, self.end), [])

    def test_adjacent_bookings_do_not_conflict(self):
        self.book(self.half_a)
        self.assertEqual(self.conflicts_for(self.half_a, self.end, self.end + timedelta(hours=1)), [])

    def test_one_millisecond_overlap_conflicts(self):
        self.book(self.half_a, end=self.end + timedelta(milliseconds=1))
        self.assertEqual(len(self.conflicts_for(self.half_a, self.end, self.end + timedelta(hours=1))), 1)

    def test_parent_and_child_block_each_other(self):
        self.book(self.half_a)
        self.assertEqual(len(self.conflicts_for(self.hall, self.start, self.end)), 1)

        self.book(self.hall, start=self.start + timedelta(days=1), end=self.end + timedelta(days=1))
        self.assertEqual(
            len(self.conflicts_for(self.half_a, self.start + timedelta(days=1), self.end + timedelta(days=1))),
            1
        )

    def test_siblings_do_not_conflict(self):
        self.book(self.half_a)
        self.assertEqual(self.conflicts_for(self.half_b, self.start, self.end), [])

    def test_grandchild_outside_one_level_rule(self):
        self.book(self.court)
        self.assertEqual(self.conflicts_for(self.hall, self.start, self.end), [])

    def test_whole_resource_booking_blocks_every_part(self):
        self.book(None)
        for part in (self.hall, self.half_a, self.half_b, self.court):
            self.assertEqual(len(self.conflicts_for(part, self.start, self.end)), 1)

    def test_part_booking_blocks_whole_resource(self):
        self.book(self.court)
        self.assertEqual(len(self.conflicts_for(None, self.start, self.end)), 1)

    def test_inactive_bookings_ignored(self):
        self.book(self.half_a, status=BookingStatus.CANCELLED)
        self.book(self.half_a, status=BookingStatus.REJECTED)
        self.assertEqual(self.conflicts_for(self.half_a, self.start, self.end), [])

    def test_pending_bookings_block(self):
        self.book(self.half_a, status=BookingStatus.PENDING)
        self.assertEqual(len(self.conflicts_for(self.half_a, self.start, self.end)), 1)

    def test_exclude_booking_ids(self):
        booking = self.book(self.half_a)
        blocking = resolve_blocking_parts(self.resource, [self.half_a.pk])
        conflicts = ConflictDetector.find_conflicts(
            self.resource, Occurrence(self.start, self.end), blocking, exclude_booking_ids=[booking.pk]
        )
        self.assertEqual(conflicts, [])

    def test_check_occurrences_reports_first_clash(self):
        self.book(self.half_a, start=self.start + timedelta(weeks=2), end=self.end + timedelta(weeks=2))
        occurrences = [
            Occurrence(self.start + timedelta(weeks=n), self.end + timedelta(weeks=n)) for n in range(4)
        ]
        blocking = resolve_blocking_parts(self.resource, [self.hall.pk])

        with self.assertRaises(BookingConflictError) as ctx:
            ConflictDetector.check_occurrences(self.resource, occurrences, blocking)

        conflict = ctx.exception.conflict
        self.assertEqual(conflict.occurrence, occurrences[2])
        self.assertEqual(str(conflict), 'Conflict on 2024-01-24: "Half A" is already booked in this period')
        self.assertEqual(ctx.exception.status_code, 409)

    def test_conflict_with_whole_facility_message(self):
        booking = self.book(None)
        conflict = BookingConflict(Occurrence(self.start, self.end), booking)
        self.assertEqual(
            str(conflict), 'Conflict on 2024-01-10: the whole facility is already booked in this period'
        )
        data = conflict.to_dict()
        self.assertEqual(data['booking']['id'], booking.pk)
        self.assertEqual(data['date'], '2024-01-10')
        self.assertEqual(data['target'], 'the whole facility')

    def test_overlap_window(self):
        booking = self.book(self.half_a)
        conflict = BookingConflict(Occurrence(self.start + timedelta(minutes=30), self.end + timedelta(minutes=30)), booking)
        self.assertEqual(conflict.overlap_start, self.start + timedelta(minutes=30))
        self.assertEqual(conflict.overlap_end, self.end)


class TestResourceConflicts(TestCase):
    """Pairwise audit of stored bookings."""

    def test_find_resource_conflicts(self):
        resource = ResourceFactory()
        hall = ResourcePartFactory(resource=resource)
        half = ResourcePartFactory(resource=resource, parent=hall)
        other = ResourcePartFactory(resource=resource)
        start = local(2024, 1, 10, 10, 0)
        end = start + timedelta(hours=1)

        b1 = BookingFactory(resource=resource, resource_part=hall, start_time=start, end_time=end)
        b2 = BookingFactory(resource=resource, resource_part=half, start_time=start, end_time=end)
        BookingFactory(resource=resource, resource_part=other, start_time=end, end_time=end + timedelta(hours=1))

        conflicts = ConflictDetector.find_resource_conflicts(resource, start, end + timedelta(hours=1))

        self.assertEqual(conflicts, [(b1, b2)])
