"""Test cases for booking price calculation."""
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from booking.pricing import calculate_booking_price, get_pricing_config
from booking.tests.factories import (
    ResourceFactory, ResourcePartFactory, StaffUserFactory, UserFactory
)


class TestPricing(TestCase):

    def setUp(self):
        patcher = patch('booking.pricing.license_manager.is_pricing_enabled', return_value=True)
        self.pricing_enabled = patcher.start()
        self.addCleanup(patcher.stop)
        self.user = UserFactory()
        self.start = timezone.make_aware(datetime(2024, 3, 4, 10, 0))

    def price(self, resource, minutes, part=None, user=None):
        return calculate_booking_price(
            user or self.user, resource, part, self.start, self.start + timedelta(minutes=minutes)
        )

    def test_free_model(self):
        result = self.price(ResourceFactory(pricing_model='FREE'), 120)
        self.assertTrue(result.is_free)
        self.assertEqual(result.price, Decimal('0'))

    def test_hourly(self):
        resource = ResourceFactory(pricing_model='HOURLY', price_per_hour=Decimal('100.00'))
        result = self.price(resource, 90)
        self.assertFalse(result.is_free)
        self.assertEqual(result.price, Decimal('150.00'))

    def test_hourly_rounds_to_cents(self):
        resource = ResourceFactory(pricing_model='HOURLY', price_per_hour=Decimal('100.00'))
        self.assertEqual(self.price(resource, 70).price, Decimal('116.67'))

    def test_daily_rounds_days_up(self):
        resource = ResourceFactory(pricing_model='DAILY', price_per_day=Decimal('500.00'))
        self.assertEqual(self.price(resource, 25 * 60).price, Decimal('1000.00'))
        self.assertEqual(self.price(resource, 60).price, Decimal('500.00'))

    def test_fixed(self):
        resource = ResourceFactory(pricing_model='FIXED', fixed_price=Decimal('300.00'))
        self.assertEqual(self.price(resource, 15).price, Decimal('300.00'))
        self.assertEqual(self.price(resource, 600).price, Decimal('300.00'))

    def test_fixed_duration(self):
        resource = ResourceFactory(
            pricing_model='FIXED_DURATION', fixed_price=Decimal('200.00'),
            fixed_price_duration=120, price_per_hour=Decimal('100.00')
        )
        self.assertEqual(self.price(resource, 90).price, Decimal('200.00'))
        self.assertEqual(self.price(resource, 180).price, Decimal('300.00'))

    def test_fixed_duration_without_hourly_rate(self):
        resource = ResourceFactory(
            pricing_model='FIXED_DURATION', fixed_price=Decimal('200.00'), fixed_price_duration=120
        )
        self.assertEqual(self.price(resource, 180).price, Decimal('200.00'))

    def test_missing_rate_is_free(self):
        result = self.price(ResourceFactory(pricing_model='HOURLY'), 60)
        self.assertTrue(result.is_free)

    def test_part_overrides_resource(self):
        resource = ResourceFactory(pricing_model='HOURLY', price_per_hour=Decimal('100.00'))
        part = ResourcePartFactory(resource=resource, price_per_hour=Decimal('50.00'))
        self.assertEqual(self.price(resource, 120, part=part).price, Decimal('100.00'))

        config = get_pricing_config(resource, part)
        self.assertEqual(config['pricing_model'], 'HOURLY')
        self.assertEqual(config['price_per_hour'], Decimal('50.00'))

    def test_part_can_change_model(self):
        resource = ResourceFactory(pricing_model='HOURLY', price_per_hour=Decimal('100.00'))
        part = ResourcePartFactory(resource=resource, pricing_model='FIXED', fixed_price=Decimal('75.00'))
        self.assertEqual(self.price(resource, 240, part=part).price, Decimal('75.00'))

    def test_free_for_role(self):
        resource = ResourceFactory(
            pricing_model='HOURLY', price_per_hour=Decimal('100.00'), free_for_roles=['admin']
        )
        self.assertTrue(self.price(resource, 60, user=StaffUserFactory()).is_free)
        self.assertFalse(self.price(resource, 60).is_free)

    def test_pricing_disabled_by_license(self):
        self.pricing_enabled.return_value = False
        resource = ResourceFactory(pricing_model='HOURLY', price_per_hour=Decimal('100.00'))
        result = self.price(resource, 60)
        self.assertTrue(result.is_free)
        self.assertEqual(result.reason, 'Pricing is not enabled')

    def test_to_dict(self):
        resource = ResourceFactory(pricing_model='FIXED', fixed_price=Decimal('300.00'))
        data = self.price(resource, 60).to_dict()
        self.assertEqual(data['price'], '300.00')
        self.assertEqual(data['pricing_model'], 'FIXED')
