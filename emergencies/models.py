# emergencies/models.py
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from donors.models import BLOOD_TYPE_CHOICES


class EmergencyRequest(models.Model):
    URGENCY_CHOICES = [
        ('critical', 'Critical - Life Threatening'),
        ('high', 'High - Within 6 Hours'),
        ('medium', 'Medium - Within 24 Hours'),
        ('low', 'Low - Within 48 Hours'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('matched', 'Matched'),
        ('fulfilled', 'Fulfilled'),
        ('cancelled', 'Cancelled'),
    ]

    patient_name = models.CharField(max_length=200)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    units_required = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    urgency_level = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='medium')

    # City name; coordinates are optional and preferred when present
    location = models.CharField(max_length=200)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    contact_number = models.CharField(max_length=15)
    hospital_name = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')

    required_by = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.patient_name} - {self.blood_type} ({self.urgency_level})"

    @property
    def hours_waiting(self):
        """Calculate how many hours this request has been open"""
        delta = timezone.now() - self.created_at
        return delta.total_seconds() / 3600

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Emergency Request'
        verbose_name_plural = 'Emergency Requests'


class DonorNotification(models.Model):
    """Snapshot of a match that was sent to a donor"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('notified', 'Notified'),
        ('accepted', 'Accepted'),
        ('declined', 'Declined'),
    ]

    donor = models.ForeignKey('donors.DonorProfile', on_delete=models.CASCADE, related_name='notifications')
    emergency_request = models.ForeignKey(EmergencyRequest, on_delete=models.CASCADE, related_name='notifications')

    match_score = models.PositiveIntegerField(help_text="Match score (0-100)")
    distance = models.FloatField(null=True, blank=True, help_text="Distance in km")
    priority_order = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    sent_at = models.DateTimeField(auto_now_add=True)
    notified_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"Notification -> {self.donor.full_name} | Request #{self.emergency_request_id} (Priority: {self.priority_order})"

    class Meta:
        ordering = ['priority_order', '-sent_at']
        constraints = [
            models.UniqueConstraint(fields=['donor', 'emergency_request'], name='unique_donor_notification'),
        ]
