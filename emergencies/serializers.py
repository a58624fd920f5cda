# emergencies/serializers.py
from rest_framework import serializers

from donors.serializers import BloodTypeField
from .models import EmergencyRequest, DonorNotification


class EmergencyRequestSerializer(serializers.ModelSerializer):
    blood_type = BloodTypeField()
    hours_waiting = serializers.FloatField(read_only=True)

    class Meta:
        model = EmergencyRequest
        fields = [
            'id', 'patient_name', 'blood_type', 'units_required', 'urgency_level',
            'location', 'latitude', 'longitude', 'contact_number', 'hospital_name',
            'description', 'status', 'required_by', 'hours_waiting',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['status', 'created_at', 'updated_at']

    def validate(self, attrs):
        latitude = attrs.get('latitude', getattr(self.instance, 'latitude', None))
        longitude = attrs.get('longitude', getattr(self.instance, 'longitude', None))
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError('Provide both latitude and longitude, or neither.')
        return attrs


class DonorNotificationSerializer(serializers.ModelSerializer):
    donor_name = serializers.CharField(source='donor.full_name', read_only=True)
    donor_blood_type = serializers.CharField(source='donor.blood_type', read_only=True)

    class Meta:
        model = DonorNotification
        fields = [
            'id', 'donor', 'donor_name', 'donor_blood_type', 'emergency_request',
            'match_score', 'distance', 'priority_order', 'status', 'sent_at', 'notified_at',
        ]
