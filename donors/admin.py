from django.contrib import admin
from django.contrib import messages

from .models import DonorProfile, DonationRecord, InvalidStatusTransition


class DonationRecordInline(admin.TabularInline):
    model = DonationRecord
    extra = 0
    fields = ['donation_date', 'donation_type', 'status', 'units_donated', 'next_eligible_date']
    readonly_fields = ['next_eligible_date']
    ordering = ['-donation_date']


@admin.register(DonorProfile)
class DonorProfileAdmin(admin.ModelAdmin):
    list_display   = ['full_name', 'blood_type', 'role', 'city', 'is_available', 'can_donate_display']
    list_filter    = ['blood_type', 'role', 'is_available', 'city']
    search_fields  = ['full_name', 'phone', 'email', 'city']
    ordering       = ['full_name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [DonationRecordInline]

    fieldsets = (
        ('Personal Info', {
            'fields': ('full_name', 'gender', 'age', 'phone', 'email', 'blood_type', 'role')
        }),
        ('Location', {
            'fields': ('city', 'pincode', 'latitude', 'longitude')
        }),
        ('Availability', {
            'fields': ('is_available',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(boolean=True, description='Can Donate Now')
    def can_donate_display(self, obj):
        return obj.can_donate


@admin.register(DonationRecord)
class DonationRecordAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'donation_date', 'donation_type', 'status', 'next_eligible_date']
    list_filter   = ['status', 'donation_type', 'donation_date']
    search_fields = ['donor__full_name', 'bridge_id']
    ordering      = ['-donation_date']
    readonly_fields = ['next_eligible_date', 'created_at', 'updated_at']

    actions = ['mark_complete', 'mark_rejected']

    def _transition(self, request, queryset, status):
        updated = 0
        for record in queryset:
            try:
                record.transition_to(status)
                updated += 1
            except InvalidStatusTransition as e:
                self.message_user(request, str(e), level=messages.WARNING)
        self.message_user(request, f'{updated} donation(s) marked as {status}.')

    @admin.action(description='Mark selected pending donations as complete')
    def mark_complete(self, request, queryset):
        self._transition(request, queryset, DonationRecord.STATUS_COMPLETE)

    @admin.action(description='Mark selected pending donations as rejected')
    def mark_rejected(self, request, queryset):
        self._transition(request, queryset, DonationRecord.STATUS_REJECTED)
