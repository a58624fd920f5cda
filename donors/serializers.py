# donors/serializers.py
from rest_framework import serializers

from algorithms.blood_compatibility import BLOOD_TYPES, normalize_blood_type
from .models import DonorProfile, DonationRecord


class BloodTypeField(serializers.ChoiceField):
    """Choice field that accepts ' a+ ' style input"""

    def __init__(self, **kwargs):
        super().__init__(choices=BLOOD_TYPES, **kwargs)

    def to_internal_value(self, data):
        return super().to_internal_value(normalize_blood_type(data) or data)


class DonorSerializer(serializers.ModelSerializer):
    blood_type = BloodTypeField()
    can_donate = serializers.BooleanField(read_only=True)
    last_donation_date = serializers.DateTimeField(read_only=True)

    class Meta:
        model = DonorProfile
        fields = [
            'id', 'full_name', 'email', 'phone', 'gender', 'age', 'blood_type',
            'role', 'city', 'pincode', 'latitude', 'longitude', 'is_available',
            'last_donation_date', 'can_donate', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        latitude = attrs.get('latitude', getattr(self.instance, 'latitude', None))
        longitude = attrs.get('longitude', getattr(self.instance, 'longitude', None))
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError('Provide both latitude and longitude, or neither.')
        return attrs


class DonorSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = DonorProfile
        fields = ['id', 'full_name', 'blood_type', 'role', 'city', 'phone']


class DonationRecordSerializer(serializers.ModelSerializer):
    donor_name = serializers.CharField(source='donor.full_name', read_only=True)

    class Meta:
        model = DonationRecord
        fields = [
            'id', 'donor', 'donor_name', 'emergency_request', 'donation_date',
            'donation_type', 'status', 'bridge_id', 'units_donated', 'notes',
            'next_eligible_date', 'created_at', 'updated_at',
        ]
        # status only changes through the complete/reject actions
        read_only_fields = ['status', 'next_eligible_date', 'created_at', 'updated_at']
