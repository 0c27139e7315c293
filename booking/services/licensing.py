# booking/services/licensing.py
"""
License validation and feature gating against the central license server.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import requests
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

VALID_STATUSES = ('active', 'grace', 'error')
PRICING_LICENSE_TYPES = ('pilot', 'standard', 'premium')


class LicenseStatus:
    """Result of one license validation."""

    def __init__(self, valid: bool, status: str, organization: str = '',
                 license_type: Optional[str] = None, message: str = '',
                 features: Optional[Dict[str, bool]] = None,
                 restrictions: Optional[Dict[str, bool]] = None,
                 grace_mode: bool = False):
        self.valid = valid
        self.status = status
        self.organization = organization
        self.license_type = license_type
        self.message = message
        self.features = features or {}
        self.restrictions = restrictions or {}
        self.grace_mode = grace_mode

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'LicenseStatus':
        return cls(
            valid=bool(data.get('valid', False)),
            status=data.get('status', 'invalid'),
            organization=data.get('organization', ''),
            license_type=data.get('licenseType'),
            message=data.get('message', ''),
            features=data.get('features'),
            restrictions=data.get('restrictions'),
            grace_mode=bool(data.get('graceMode', False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'status': self.status,
            'organization': self.organization,
            'licenseType': self.license_type,
            'message': self.message,
            'features': self.features,
            'restrictions': self.restrictions,
            'graceMode': self.grace_mode,
        }


class LicenseManager:
    """
    Validates the deployment's license and answers feature questions.

    Results are cached in the Django cache. When the server cannot be
    reached the last good result is reused, and without one the
    deployment keeps working in grace mode.
    """

    REQUEST_TIMEOUT = 10

    def __init__(self):
        self._cache_key = 'license_status'
        self._last_good_key = 'license_status_last_good'

    @property
    def cache_timeout(self) -> int:
        return getattr(settings, 'LICENSE_CACHE_TIMEOUT', 300)

    def is_configured(self) -> bool:
        return bool(getattr(settings, 'LICENSE_SERVER_URL', '') and getattr(settings, 'LICENSE_KEY', ''))

    def validate_license(self, force_refresh: bool = False) -> LicenseStatus:
        """
        Validate the license against the license server.

        Args:
            force_refresh: Skip the cached result

        Returns:
            LicenseStatus
        """
        if not self.is_configured():
            return LicenseStatus(
                valid=True,
                status='active',
                organization='Development Mode',
                message='No license server configured',
            )

        if not force_refresh:
            cached = cache.get(self._cache_key)
            if cached:
                return LicenseStatus.from_response(cached)

        try:
            data = self._validate_remote()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"License validation failed: {e}")
            last_good = cache.get(self._last_good_key)
            if last_good:
                logger.info("Using last known license status")
                return LicenseStatus.from_response(last_good)
            return LicenseStatus(
                valid=True,
                status='error',
                message='Could not reach the license server. Retrying later.',
                grace_mode=True,
            )

        cache.set(self._cache_key, data, self.cache_timeout)
        cache.set(self._last_good_key, data, None)
        logger.info(f"License validation result: {data.get('status')} for {data.get('organization')}")
        return LicenseStatus.from_response(data)

    def _validate_remote(self) -> Dict[str, Any]:
        """Perform remote license validation against licensing server."""
        from facility_booking import __version__

        payload = {
            'slug': getattr(settings, 'ORG_SLUG', ''),
            'licenseKey': settings.LICENSE_KEY,
            'appVersion': __version__,
            'stats': self._get_stats(),
        }
        response = requests.post(
            f"{settings.LICENSE_SERVER_URL.rstrip('/')}/api/license/validate",
            json=payload,
            timeout=self.REQUEST_TIMEOUT,
            headers={'Content-Type': 'application/json'}
        )
        response.raise_for_status()
        return response.json()

    def _get_stats(self) -> Dict[str, int]:
        from django.contrib.auth.models import User
        from booking.models import Booking

        return {
            'users': User.objects.count(),
            'bookings': Booking.objects.count(),
        }

    def can_create_booking(self) -> Tuple[bool, str]:
        """Check whether the license allows new bookings."""
        license_status = self.validate_license()
        if not license_status.valid:
            return False, license_status.message or "The license is not valid"
        if license_status.restrictions.get('canCreateBookings') is False:
            return False, license_status.message or "New bookings are disabled by the license"
        return True, ''

    def is_pricing_enabled(self) -> bool:
        """Pricing is a licensed feature."""
        license_status = self.validate_license()
        if not license_status.valid and license_status.status not in VALID_STATUSES:
            return False
        return (
            license_status.license_type in PRICING_LICENSE_TYPES
            or license_status.features.get('emailNotifications') is True
        )

    def clear_cache(self):
        """Clear license cache to force revalidation."""
        cache.delete(self._cache_key)


# Global license manager instance
license_manager = LicenseManager()
