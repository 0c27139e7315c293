"""Test cases for booking e-mail notifications."""
from datetime import date, datetime
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from django.utils import timezone

from booking.exceptions import BookingConflictError
from booking.models import RecurrenceType
from booking.notifications import booking_notifications, dispatch
from booking.recurring import Recurrence
from booking.services.booking_service import BookingRequest, BookingService
from booking.tests.factories import (
    BookingFactory, ResourceFactory, StaffUserFactory, UserFactory
)


def local(*args):
    return timezone.make_aware(datetime(*args))


class TestBookingNotifications(TestCase):

    def setUp(self):
        self.service = BookingService()
        self.user = UserFactory(email='member@test.com')
        self.staff = StaffUserFactory(email='admin@test.com')

    def create(self, resource, start=None, end=None):
        return self.service.create_bookings(self.user, BookingRequest(
            resource_id=resource.pk,
            start_time=start or local(2024, 5, 2, 17, 0),
            end_time=end or local(2024, 5, 2, 18, 0),
            title='Handball practice',
        ))

    def test_confirmation_sent_after_commit(self):
        resource = ResourceFactory(name='Main Hall')
        with self.captureOnCommitCallbacks(execute=True):
            self.create(resource)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['member@test.com'])
        self.assertIn('confirmed', mail.outbox[0].subject)
        self.assertIn('Main Hall', mail.outbox[0].subject)

    def test_confirmation_rendered_from_template(self):
        resource = ResourceFactory(name='Main Hall')
        with self.captureOnCommitCallbacks(execute=True):
            self.service.create_bookings(self.user, BookingRequest(
                resource_id=resource.pk,
                start_time=local(2024, 5, 2, 17, 0),
                end_time=local(2024, 5, 2, 18, 0),
                title='Handball practice',
                recurrence=Recurrence(RecurrenceType.WEEKLY, date(2024, 5, 16)),
            ))

        message = mail.outbox[0]
        self.assertIn('"Handball practice" of Main Hall is confirmed', message.body)
        self.assertIn('(and 2 other dates)', message.body)
        self.assertNotIn('<p>', message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, 'text/html')
        self.assertIn('<p>', html)

    def test_pending_booking_notifies_admins(self):
        resource = ResourceFactory(requires_approval=True)
        with self.captureOnCommitCallbacks(execute=True):
            self.create(resource)

        recipients = sorted(message.to[0] for message in mail.outbox)
        self.assertEqual(recipients, ['admin@test.com', 'member@test.com'])

    @override_settings(BOOKING_ADMIN_EMAILS=['office@test.com'])
    def test_configured_admin_emails(self):
        self.assertEqual(booking_notifications.admin_recipients(), ['admin@test.com', 'office@test.com'])

    def test_nothing_sent_for_rejected_request(self):
        resource = ResourceFactory()
        BookingFactory(resource=resource, start_time=local(2024, 5, 2, 17, 0), end_time=local(2024, 5, 2, 18, 0))

        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(BookingConflictError):
                self.create(resource)

        self.assertEqual(len(mail.outbox), 0)

    def test_approval_notifies_owner(self):
        resource = ResourceFactory(requires_approval=True)
        booking = self.create(resource).bookings[0]

        with self.captureOnCommitCallbacks(execute=True):
            self.service.approve(booking, self.staff, note='Welcome')

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['member@test.com'])
        self.assertIn('approved', mail.outbox[0].subject)
        self.assertIn('Welcome', mail.outbox[0].body)

    def test_contact_email_preferred(self):
        booking = BookingFactory(user=self.user, contact_email='contact@test.com')
        self.assertEqual(booking_notifications.recipient_for(booking), 'contact@test.com')

    def test_user_cancellation_notifies_admins(self):
        booking = BookingFactory(user=self.user)
        with self.captureOnCommitCallbacks(execute=True):
            self.service.cancel(booking, self.user)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['admin@test.com'])

    def test_admin_cancellation_notifies_owner(self):
        booking = BookingFactory(user=self.user)
        with self.captureOnCommitCallbacks(execute=True):
            self.service.cancel(booking, self.staff, reason='Floor repairs')

        self.assertEqual(mail.outbox[0].to, ['member@test.com'])
        self.assertIn('Floor repairs', mail.outbox[0].body)

    def test_delivery_failure_is_logged_not_raised(self):
        booking = BookingFactory(user=self.user)
        context = booking_notifications.context_for(booking)
        with patch('booking.notifications.EmailMultiAlternatives.send', side_effect=OSError('SMTP down')):
            with self.assertLogs('booking.notifications', level='ERROR'):
                with self.captureOnCommitCallbacks(execute=True):
                    dispatch('Subject', 'booking_confirmed', context, ['member@test.com'])

    def test_empty_recipients_skipped(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            dispatch('Subject', 'booking_confirmed', {}, ['', None])
        self.assertEqual(callbacks, [])

    @override_settings(BOOKING_NOTIFICATIONS_ASYNC=True)
    def test_async_delivery_uses_daemon_thread(self):
        context = booking_notifications.context_for(BookingFactory(user=self.user))
        with patch('booking.notifications.threading.Thread') as mock_thread:
            with self.captureOnCommitCallbacks(execute=True):
                dispatch('Subject', 'booking_confirmed', context, ['member@test.com'])

        self.assertTrue(mock_thread.call_args[1]['daemon'])
        mock_thread.return_value.start.assert_called_once()
