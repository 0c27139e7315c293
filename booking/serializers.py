# booking/serializers.py
"""
DRF serializers for Facility Booking.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .exceptions import BookingValidationError
from .models import Booking, RecurrenceType, Resource, ResourcePart
from .recurring import Recurrence
from .services.booking_service import BookingRequest


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name']
        read_only_fields = ['id']


class ResourcePartSerializer(serializers.ModelSerializer):
    children = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = ResourcePart
        fields = [
            'id', 'resource', 'parent', 'children', 'name', 'description',
            'capacity', 'is_active', 'pricing_model', 'price_per_hour',
            'price_per_day', 'fixed_price', 'fixed_price_duration',
            'free_for_roles', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'children', 'created_at', 'updated_at']

    def validate(self, attrs):
        """Run the model's parent checks before saving."""
        instance = self.instance or ResourcePart()
        for field, value in attrs.items():
            setattr(instance, field, value)
        try:
            instance.clean()
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.message_dict if hasattr(e, 'error_dict') else e.messages)
        return attrs


class ResourceSerializer(serializers.ModelSerializer):
    parts = ResourcePartSerializer(many=True, read_only=True)

    class Meta:
        model = Resource
        fields = [
            'id', 'name', 'description', 'location', 'is_active',
            'requires_approval', 'min_booking_minutes', 'max_booking_minutes',
            'advance_booking_days', 'pricing_model', 'price_per_hour',
            'price_per_day', 'fixed_price', 'fixed_price_duration',
            'free_for_roles', 'parts', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'parts', 'created_at', 'updated_at']


class BookingSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    resource_name = serializers.CharField(source='resource.name', read_only=True)
    resource_part_name = serializers.CharField(source='resource_part.name', read_only=True, default=None)
    duration_hours = serializers.SerializerMethodField()
    can_cancel = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id', 'resource', 'resource_name', 'resource_part', 'resource_part_name',
            'user', 'title', 'description', 'start_time', 'end_time', 'status',
            'status_note', 'is_recurring', 'recurring_type', 'recurring_end_date',
            'parent_booking', 'total_price', 'contact_name', 'contact_email',
            'contact_phone', 'duration_hours', 'can_cancel', 'created_at',
            'updated_at', 'approved_by', 'approved_at'
        ]
        read_only_fields = [
            'id', 'resource', 'resource_part', 'title', 'description', 'start_time',
            'end_time', 'status', 'status_note', 'is_recurring', 'recurring_type',
            'recurring_end_date', 'parent_booking', 'total_price', 'contact_name',
            'contact_email', 'contact_phone', 'created_at', 'updated_at',
            'approved_by', 'approved_at'
        ]

    def get_duration_hours(self, obj):
        """Calculate booking duration in hours."""
        return obj.duration.total_seconds() / 3600

    def get_can_cancel(self, obj):
        return obj.can_be_cancelled


class RecurrenceSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=RecurrenceType.choices)
    end_date = serializers.DateField()


class BookingCreateSerializer(serializers.Serializer):
    """
    Input of a booking request.

    Parts may be given as a ``resource_parts`` list or a single
    ``resource_part``; neither books the whole resource. Recurrence may be a
    nested ``recurrence`` object or the flat ``is_recurring``,
    ``recurring_type`` and ``recurring_end_date`` fields.
    """
    resource = serializers.IntegerField()
    resource_part = serializers.IntegerField(required=False, allow_null=True)
    resource_parts = serializers.ListField(child=serializers.IntegerField(), required=False)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    recurrence = RecurrenceSerializer(required=False, allow_null=True)
    is_recurring = serializers.BooleanField(required=False, default=False)
    recurring_type = serializers.ChoiceField(choices=RecurrenceType.choices, required=False, allow_blank=True)
    recurring_end_date = serializers.DateField(required=False, allow_null=True)
    contact_name = serializers.CharField(required=False, allow_blank=True, default='')
    contact_email = serializers.EmailField(required=False, allow_blank=True, default='')
    contact_phone = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': "End time must be after start time."})

        recurrence = attrs.get('recurrence')
        if not recurrence and attrs.get('is_recurring'):
            if not attrs.get('recurring_type') or not attrs.get('recurring_end_date'):
                raise serializers.ValidationError(
                    "Recurring bookings need recurring_type and recurring_end_date."
                )
            recurrence = {'type': attrs['recurring_type'], 'end_date': attrs['recurring_end_date']}
        attrs['recurrence'] = recurrence or None
        return attrs

    def to_booking_request(self):
        """Build the service input from validated data."""
        data = self.validated_data
        part_ids = list(data.get('resource_parts') or [])
        if not part_ids and data.get('resource_part'):
            part_ids = [data['resource_part']]

        recurrence = None
        if data['recurrence']:
            try:
                recurrence = Recurrence(data['recurrence']['type'], data['recurrence']['end_date'])
            except BookingValidationError as e:
                raise serializers.ValidationError(e.message)

        return BookingRequest(
            resource_id=data['resource'],
            part_ids=part_ids,
            start_time=data['start_time'],
            end_time=data['end_time'],
            title=data['title'],
            description=data['description'],
            recurrence=recurrence,
            contact_name=data['contact_name'],
            contact_email=data['contact_email'],
            contact_phone=data['contact_phone'],
        )


class BookingDecisionSerializer(serializers.Serializer):
    status_note = serializers.CharField(required=False, allow_blank=True, default='')
    apply_to_all = serializers.BooleanField(required=False, default=False)


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class AvailabilityQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    parts = serializers.CharField(required=False, allow_blank=True, default='')
    recurring_type = serializers.ChoiceField(choices=RecurrenceType.choices, required=False)
    recurring_end_date = serializers.DateField(required=False)

    def validate_parts(self, value):
        try:
            return [int(p) for p in value.split(',') if p.strip()]
        except ValueError:
            raise serializers.ValidationError("parts must be a comma separated list of ids")

    def validate(self, attrs):
        if attrs['end'] <= attrs['start']:
            raise serializers.ValidationError({'end': "End time must be after start time."})
        return attrs
