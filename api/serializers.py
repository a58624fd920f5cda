# api/serializers.py
from rest_framework import serializers

from donors.serializers import BloodTypeField, DonorSummarySerializer, DonationRecordSerializer
from emergencies.models import EmergencyRequest


class DonorMatchSerializer(serializers.Serializer):
    """
    Read-only view of a match dict produced by algorithms.matching
    """
    donor = DonorSummarySerializer()
    distance = serializers.FloatField()
    last_donation = DonationRecordSerializer(allow_null=True)
    is_eligible = serializers.BooleanField()
    match_score = serializers.IntegerField()
    approximate_location = serializers.BooleanField()


class MatchQuerySerializer(serializers.Serializer):
    """Query parameters accepted by the matches endpoint"""
    max_distance = serializers.FloatField(required=False, min_value=0)
    limit = serializers.IntegerField(required=False, min_value=1)
    seed = serializers.IntegerField(required=False)
    exclude_approximate = serializers.BooleanField(required=False, default=False)


class SmartMatchingRequestSerializer(serializers.Serializer):
    blood_type = BloodTypeField()
    urgency_level = serializers.ChoiceField(
        choices=[choice for choice, _ in EmergencyRequest.URGENCY_CHOICES],
        default='medium'
    )
    location = serializers.CharField(required=False, allow_blank=True, default='')
    latitude = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None, min_value=-180, max_value=180)
    units_required = serializers.IntegerField(required=False, default=1, min_value=1)
    max_distance = serializers.FloatField(required=False, min_value=0)

    def validate(self, attrs):
        has_coordinates = attrs['latitude'] is not None and attrs['longitude'] is not None
        if not has_coordinates and not attrs['location']:
            raise serializers.ValidationError('Provide a location or both latitude and longitude.')
        return attrs


class BloodPredictionRequestSerializer(serializers.Serializer):
    location = serializers.CharField()
    blood_type = BloodTypeField()
    historical_data = serializers.DictField(required=False, default=dict)
    weather_data = serializers.DictField(required=False, default=dict)
    event_data = serializers.DictField(required=False, default=dict)
