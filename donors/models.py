from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone

from algorithms.blood_compatibility import BLOOD_TYPES
from algorithms.eligibility import is_eligible, next_eligible_date

BLOOD_TYPE_CHOICES = [(blood_type, blood_type) for blood_type in BLOOD_TYPES]


class InvalidStatusTransition(ValueError):
    """Raised when a donation record is moved to a status it can't reach"""


# ---------------------------
# Donor Profile
# ---------------------------
class DonorProfile(models.Model):
    ROLE_CHOICES = [
        ('emergency_donor', 'Emergency Donor'),
        ('bridge_donor', 'Bridge Donor'),
        ('fighter', 'Fighter'),
        ('volunteer', 'Volunteer'),
    ]

    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]

    full_name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=15, db_index=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    age = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(18), MaxValueValidator(65)]
    )
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='emergency_donor')

    # Location: coordinates are optional, city is the fallback
    city = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    is_available = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def last_donation(self):
        """Most recent donation that actually drew blood"""
        return self.donations.exclude(status=DonationRecord.STATUS_REJECTED).order_by('-donation_date').first()

    @property
    def last_donation_date(self):
        last = self.last_donation
        return last.donation_date if last else None

    @property
    def can_donate(self) -> bool:
        """Donors can donate every 56 days"""
        return is_eligible(self.last_donation_date)

    def __str__(self):
        return f"{self.full_name} ({self.blood_type})"

    class Meta:
        verbose_name = "Donor Profile"
        verbose_name_plural = "Donor Profiles"
        ordering = ['-created_at']


# ---------------------------
# Donation Record
# ---------------------------
class DonationRecord(models.Model):
    TYPE_CHOICES = [
        ('bridge', 'Bridge'),
        ('voluntary', 'Voluntary'),
        ('emergency', 'Emergency'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_COMPLETE = 'complete'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETE, 'Complete'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    # Only pending records may change status
    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: {STATUS_COMPLETE, STATUS_REJECTED},
        STATUS_COMPLETE: set(),
        STATUS_REJECTED: set(),
    }

    donor = models.ForeignKey(
        DonorProfile,
        on_delete=models.CASCADE,
        related_name='donations'
    )
    emergency_request = models.ForeignKey(
        'emergencies.EmergencyRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='donations'
    )

    donation_date = models.DateTimeField(default=timezone.now)
    donation_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='voluntary')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    bridge_id = models.CharField(max_length=50, blank=True)
    units_donated = models.PositiveIntegerField(default=1)
    notes = models.TextField(blank=True)

    next_eligible_date = models.DateTimeField(editable=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.next_eligible_date = next_eligible_date(self.donation_date)
        super().save(*args, **kwargs)

    def transition_to(self, status):
        """
        Move a pending record to complete or rejected and persist it.

        Raises:
            InvalidStatusTransition: if the record is not pending or the
                target status is unknown
        """
        if status not in self.ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidStatusTransition(
                f"Cannot move donation #{self.pk} from '{self.status}' to '{status}'"
            )
        self.status = status
        self.save(update_fields=['status', 'next_eligible_date', 'updated_at'])

    def mark_complete(self):
        self.transition_to(self.STATUS_COMPLETE)

    def mark_rejected(self):
        self.transition_to(self.STATUS_REJECTED)

    def __str__(self):
        return f"{self.donor.full_name} | {self.donation_date:%Y-%m-%d} ({self.status})"

    class Meta:
        ordering = ['-donation_date']
        verbose_name = "Donation Record"
        verbose_name_plural = "Donation Records"
        indexes = [
            models.Index(fields=['donor', '-donation_date']),
        ]
