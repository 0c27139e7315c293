# booking/views.py
"""
API views for Facility Booking.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from datetime import datetime

from django.db.models import Q
from django.utils import timezone
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .exceptions import BookingError
from .models import Booking, Resource, ResourcePart
from .recurring import Recurrence
from .serializers import (
    AvailabilityQuerySerializer, BookingCancelSerializer, BookingCreateSerializer,
    BookingDecisionSerializer, BookingSerializer, ResourcePartSerializer,
    ResourceSerializer
)
from .services.booking_service import booking_service


class IsStaffOrReadOnly(permissions.BasePermission):
    """Anyone signed in may read; only staff may write."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_staff


class IsOwnerOrStaffPermission(permissions.BasePermission):
    """Only the booking's owner or staff may see or change a booking."""

    def has_object_permission(self, request, view, obj):
        return obj.user == request.user or request.user.is_staff


def error_response(error: BookingError):
    return Response(error.to_dict(), status=error.status_code)


class ResourceViewSet(viewsets.ModelViewSet):
    """ViewSet for resources and their availability."""
    queryset = Resource.objects.prefetch_related('parts')
    serializer_class = ResourceSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        queryset = super().get_queryset()
        if not self.request.user.is_staff:
            queryset = queryset.filter(is_active=True)
        return queryset

    @action(detail=True, methods=['get'])
    def availability(self, request, pk=None):
        """Check a slot without booking it: ?start=&end=&parts=1,2"""
        resource = self.get_object()
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        try:
            recurrence = None
            if data.get('recurring_type') and data.get('recurring_end_date'):
                recurrence = Recurrence(data['recurring_type'], data['recurring_end_date'])
            result = booking_service.check_availability(
                resource.pk, data['parts'], data['start'], data['end'], recurrence
            )
        except BookingError as e:
            return error_response(e)
        return Response(result)

    @action(detail=True, methods=['get'])
    def bookings(self, request, pk=None):
        """Active bookings on a resource, for calendars: ?start=YYYY-MM-DD&end=YYYY-MM-DD"""
        resource = self.get_object()
        queryset = Booking.objects.active().filter(resource=resource).select_related('resource', 'resource_part', 'user')

        start_param = request.query_params.get('start')
        end_param = request.query_params.get('end')
        if start_param and end_param:
            try:
                start = timezone.make_aware(datetime.strptime(start_param, '%Y-%m-%d'))
                end = timezone.make_aware(datetime.strptime(end_param, '%Y-%m-%d'))
            except ValueError:
                return Response(
                    {"error": "start and end must be dates (YYYY-MM-DD)"},
                    status=status.HTTP_400_BAD_REQUEST
                )
            queryset = queryset.overlapping(start, end)

        serializer = BookingSerializer(queryset.order_by('start_time'), many=True)
        return Response(serializer.data)


class ResourcePartViewSet(viewsets.ModelViewSet):
    """ViewSet for resource parts."""
    queryset = ResourcePart.objects.select_related('resource', 'parent')
    serializer_class = ResourcePartSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        queryset = super().get_queryset()
        resource_id = self.request.query_params.get('resource')
        if resource_id:
            queryset = queryset.filter(resource_id=resource_id)
        return queryset


class BookingViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     viewsets.GenericViewSet):
    """ViewSet for creating bookings and moving them through their lifecycle."""
    queryset = Booking.objects.all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsOwnerOrStaffPermission]

    def get_queryset(self):
        """Filter bookings based on user role and query parameters."""
        user = self.request.user
        queryset = Booking.objects.select_related('resource', 'resource_part', 'user', 'approved_by')

        if not user.is_staff:
            queryset = queryset.filter(user=user)

        resource_id = self.request.query_params.get('resource')
        if resource_id:
            queryset = queryset.filter(resource_id=resource_id)

        part_id = self.request.query_params.get('resource_part')
        if part_id:
            queryset = queryset.filter(Q(resource_part_id=part_id) | Q(resource_part__isnull=True))

        start_date = self.request.query_params.get('start_date')
        end_date = self.request.query_params.get('end_date')
        if start_date and end_date:
            try:
                start_datetime = timezone.make_aware(
                    datetime.strptime(start_date, '%Y-%m-%d')
                )
                end_datetime = timezone.make_aware(
                    datetime.strptime(end_date, '%Y-%m-%d').replace(hour=23, minute=59, second=59)
                )
                queryset = queryset.filter(
                    start_time__gte=start_datetime,
                    end_time__lte=end_datetime
                )
            except ValueError:
                # Unparseable dates leave the list unfiltered
                pass

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        return queryset.order_by('start_time')

    def create(self, request):
        """Create a booking, one per part and occurrence."""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = booking_service.create_bookings(request.user, serializer.to_booking_request())
        except BookingError as e:
            return error_response(e)

        return Response(
            {
                'bookings': BookingSerializer(result.bookings, many=True).data,
                'count': result.count,
                'message': result.message,
            },
            status=status.HTTP_201_CREATED
        )

    def _decide(self, request, decide):
        if not request.user.is_staff:
            return Response(
                {"error": "Permission denied"},
                status=status.HTTP_403_FORBIDDEN
            )
        booking = self.get_object()
        serializer = BookingDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            updated = decide(
                booking, request.user,
                note=serializer.validated_data['status_note'],
                apply_to_all=serializer.validated_data['apply_to_all'],
            )
        except BookingError as e:
            return error_response(e)

        booking.refresh_from_db()
        data = self.get_serializer(booking).data
        data['updated_count'] = len(updated)
        return Response(data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """Approve a booking, or its whole series with apply_to_all."""
        return self._decide(request, booking_service.approve)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        """Reject a booking, or its whole series with apply_to_all."""
        return self._decide(request, booking_service.reject)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking."""
        booking = self.get_object()
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking_service.cancel(booking, request.user, serializer.validated_data['reason'])
        except BookingError as e:
            return error_response(e)

        return Response(self.get_serializer(booking).data)
