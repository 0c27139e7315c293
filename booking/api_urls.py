# booking/api_urls.py
"""
API URL configuration for the booking app.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'resources', views.ResourceViewSet)
router.register(r'parts', views.ResourcePartViewSet)
router.register(r'bookings', views.BookingViewSet)

app_name = 'api'

urlpatterns = [
    path('', include(router.urls)),
]
