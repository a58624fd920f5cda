from django.contrib import admin

from .models import EmergencyRequest, DonorNotification
from .tasks import notify_matched_donors


class DonorNotificationInline(admin.TabularInline):
    model = DonorNotification
    extra = 0
    fields = ['donor', 'match_score', 'distance', 'priority_order', 'status', 'notified_at']
    readonly_fields = ['match_score', 'distance', 'priority_order', 'notified_at']
    ordering = ['priority_order']


@admin.register(EmergencyRequest)
class EmergencyRequestAdmin(admin.ModelAdmin):
    list_display  = ['patient_name', 'blood_type', 'units_required', 'urgency_level', 'location', 'status', 'created_at']
    list_filter   = ['status', 'urgency_level', 'blood_type']
    search_fields = ['patient_name', 'hospital_name', 'location']
    ordering      = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [DonorNotificationInline]

    actions = ['notify_donors']

    @admin.action(description='Match and notify donors for selected requests')
    def notify_donors(self, request, queryset):
        for emergency_request in queryset:
            self.message_user(request, notify_matched_donors(emergency_request.id))


@admin.register(DonorNotification)
class DonorNotificationAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'emergency_request', 'match_score', 'distance', 'priority_order', 'status', 'notified_at']
    list_filter   = ['status']
    search_fields = ['donor__full_name', 'emergency_request__patient_name']
    ordering      = ['priority_order', '-sent_at']
    readonly_fields = ['sent_at', 'notified_at']
