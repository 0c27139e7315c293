# booking/admin.py
"""
Django admin configuration for Facility Booking.

This file is part of Facility Booking.
Copyright (C) 2025 Facility Booking Contributors

This software is dual-licensed:
1. GNU General Public License v3.0 (GPL-3.0) - for open source use
2. Commercial License - for proprietary and commercial use

For GPL-3.0 license terms, see LICENSE file.
For commercial licensing, see COMMERCIAL-LICENSE.txt.
"""

from django.contrib import admin

from .models import Booking, BookingHistory, Resource, ResourcePart


class ResourcePartInline(admin.TabularInline):
    model = ResourcePart
    fk_name = 'resource'
    extra = 0
    fields = ('name', 'parent', 'capacity', 'is_active')


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ('name', 'location', 'is_active', 'requires_approval', 'pricing_model')
    list_filter = ('is_active', 'requires_approval', 'pricing_model')
    search_fields = ('name', 'description', 'location')
    inlines = [ResourcePartInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'location', 'is_active')
        }),
        ('Booking Rules', {
            'fields': ('requires_approval', 'min_booking_minutes', 'max_booking_minutes', 'advance_booking_days')
        }),
        ('Pricing', {
            'fields': ('pricing_model', 'price_per_hour', 'price_per_day', 'fixed_price',
                       'fixed_price_duration', 'free_for_roles'),
            'classes': ('collapse',)
        }),
    )


@admin.register(ResourcePart)
class ResourcePartAdmin(admin.ModelAdmin):
    list_display = ('name', 'resource', 'parent', 'capacity', 'is_active')
    list_filter = ('resource', 'is_active')
    search_fields = ('name', 'resource__name')


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('title', 'resource', 'resource_part', 'user', 'start_time', 'end_time', 'status')
    list_filter = ('status', 'resource', 'is_recurring')
    search_fields = ('title', 'description', 'user__username', 'resource__name', 'contact_name')
    readonly_fields = ('created_at', 'updated_at', 'approved_at', 'parent_booking')
    date_hierarchy = 'start_time'

    fieldsets = (
        ('Basic Information', {
            'fields': ('title', 'description', 'resource', 'resource_part', 'user', 'status', 'status_note')
        }),
        ('Scheduling', {
            'fields': ('start_time', 'end_time', 'is_recurring', 'recurring_type',
                       'recurring_end_date', 'parent_booking')
        }),
        ('Contact', {
            'fields': ('contact_name', 'contact_email', 'contact_phone'),
            'classes': ('collapse',)
        }),
        ('Approval', {
            'fields': ('approved_by', 'approved_at', 'total_price'),
            'classes': ('collapse',)
        }),
        ('System Fields', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(BookingHistory)
class BookingHistoryAdmin(admin.ModelAdmin):
    list_display = ('booking', 'user', 'action', 'timestamp')
    list_filter = ('action',)
    search_fields = ('booking__title', 'user__username', 'action')
    readonly_fields = ('timestamp',)
    date_hierarchy = 'timestamp'
