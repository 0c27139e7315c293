# booking/pricing.py
"""
Booking price calculation.

Pricing is configured per resource and may be overridden per part, field
by field. It is only applied when the license enables it.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

import math
from decimal import Decimal, ROUND_HALF_UP

from .services.licensing import license_manager

PRICING_FIELDS = ('pricing_model', 'price_per_hour', 'price_per_day',
                  'fixed_price', 'fixed_price_duration', 'free_for_roles')

CENT = Decimal('0.01')


class PriceCalculation:
    def __init__(self, price=Decimal('0'), is_free=True, reason='', pricing_model='FREE', breakdown=None):
        self.price = price
        self.is_free = is_free
        self.reason = reason
        self.pricing_model = pricing_model
        self.breakdown = breakdown or {}

    def to_dict(self):
        return {
            'price': str(self.price),
            'is_free': self.is_free,
            'reason': self.reason,
            'pricing_model': self.pricing_model,
            'breakdown': self.breakdown,
        }


def free(reason, pricing_model='FREE'):
    return PriceCalculation(reason=reason, pricing_model=pricing_model)


def get_pricing_config(resource, part=None):
    """Effective pricing fields for a resource or one of its parts."""
    config = {field: getattr(resource, field) for field in PRICING_FIELDS}
    if part is not None:
        for field in PRICING_FIELDS:
            value = getattr(part, field)
            if value not in (None, ''):
                config[field] = value
    config['pricing_model'] = config['pricing_model'] or 'FREE'
    config['free_for_roles'] = config['free_for_roles'] or []
    return config


def role_for(user):
    return 'admin' if user.is_staff else 'user'


def calculate_booking_price(user, resource, part, start_time, end_time):
    """
    Calculate the price of one booking.

    Args:
        user: Booking user; decides role-based free access
        resource: Resource instance
        part: ResourcePart instance or None for the whole resource
        start_time: Booking start
        end_time: Booking end

    Returns:
        PriceCalculation
    """
    if not license_manager.is_pricing_enabled():
        return free("Pricing is not enabled")

    config = get_pricing_config(resource, part)
    model = config['pricing_model']
    if model == 'FREE':
        return free("Free booking")

    role = role_for(user)
    if role in config['free_for_roles']:
        return free(f"Free for {role}", model)

    duration_minutes = math.ceil((end_time - start_time).total_seconds() / 60)
    hours = Decimal(duration_minutes) / Decimal(60)
    days = math.ceil(duration_minutes / (60 * 24))

    price_per_hour = config['price_per_hour']
    price_per_day = config['price_per_day']
    fixed_price = config['fixed_price']
    fixed_duration = config['fixed_price_duration']

    if model == 'HOURLY':
        if not price_per_hour:
            return free("No hourly price set", model)
        price = price_per_hour * hours
        breakdown = {'base_price': str(price_per_hour), 'hours': str(hours.quantize(CENT))}
    elif model == 'DAILY':
        if not price_per_day:
            return free("No daily price set", model)
        price = price_per_day * days
        breakdown = {'base_price': str(price_per_day), 'days': days}
    elif model == 'FIXED':
        if not fixed_price:
            return free("No fixed price set", model)
        price = fixed_price
        breakdown = {'base_price': str(fixed_price)}
    elif model == 'FIXED_DURATION':
        if not fixed_price or not fixed_duration:
            return free("No fixed price or duration set", model)
        if duration_minutes <= fixed_duration or not price_per_hour:
            price = fixed_price
            breakdown = {'base_price': str(fixed_price), 'duration': duration_minutes}
        else:
            price = price_per_hour * hours
            breakdown = {'base_price': str(price_per_hour), 'hours': str(hours.quantize(CENT))}
    else:
        return free("Unknown pricing model")

    return PriceCalculation(
        price=Decimal(price).quantize(CENT, rounding=ROUND_HALF_UP),
        is_free=False,
        pricing_model=model,
        breakdown=breakdown,
    )
