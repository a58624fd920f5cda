# api/views.py
import random
from datetime import timedelta

from django.conf import settings
from django.db.models import Count
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.response import Response

from algorithms.blood_compatibility import normalize_blood_type
from algorithms.eligibility import MIN_DONATION_INTERVAL_DAYS
from algorithms.priority import run_priority_algorithm
from donors.models import DonorProfile, DonationRecord, InvalidStatusTransition
from donors.serializers import DonorSerializer, DonationRecordSerializer
from emergencies.models import EmergencyRequest
from emergencies.serializers import EmergencyRequestSerializer
from emergencies.tasks import notify_matched_donors
from emergencies.utils import match_donors_for_request
from .serializers import DonorMatchSerializer, MatchQuerySerializer

OPEN_REQUEST_STATUSES = ['pending', 'matched']


class DonorViewSet(viewsets.ModelViewSet):
    """API endpoint for registering and browsing donors"""
    queryset = DonorProfile.objects.all().order_by('-created_at')
    serializer_class = DonorSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        blood_type = params.get('blood_type')
        if blood_type and blood_type != 'all':
            queryset = queryset.filter(blood_type=normalize_blood_type(blood_type) or blood_type)

        city = params.get('city')
        if city:
            queryset = queryset.filter(city__iexact=city.strip())

        available = params.get('available')
        if available is not None:
            queryset = queryset.filter(is_available=available.lower() in ('1', 'true', 'yes'))

        return queryset

    @action(detail=True, methods=['get'])
    def donations(self, request, pk=None):
        """Donation history for one donor, newest first"""
        donor = self.get_object()
        serializer = DonationRecordSerializer(donor.donations.order_by('-donation_date'), many=True)
        return Response(serializer.data)


class DonationRecordViewSet(mixins.CreateModelMixin,
                            mixins.ListModelMixin,
                            mixins.RetrieveModelMixin,
                            viewsets.GenericViewSet):
    """
    API endpoint for recording donations.
    Records are never edited; only pending ones may be completed or rejected.
    """
    queryset = DonationRecord.objects.select_related('donor').order_by('-donation_date')
    serializer_class = DonationRecordSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        donor_id = self.request.query_params.get('donor')
        if donor_id:
            queryset = queryset.filter(donor_id=donor_id)
        status_filter = self.request.query_params.get('status')
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        return queryset

    def _transition(self, status_value):
        record = self.get_object()
        try:
            record.transition_to(status_value)
        except InvalidStatusTransition as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(record).data)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        return self._transition(DonationRecord.STATUS_COMPLETE)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        return self._transition(DonationRecord.STATUS_REJECTED)


class EmergencyRequestViewSet(viewsets.ModelViewSet):
    """API endpoint for managing emergency blood requests"""
    queryset = EmergencyRequest.objects.all().order_by('-created_at')
    serializer_class = EmergencyRequestSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)

        blood_type = params.get('blood_type')
        if blood_type and blood_type != 'all':
            queryset = queryset.filter(blood_type=normalize_blood_type(blood_type) or blood_type)

        urgency = params.get('urgency')
        if urgency:
            queryset = queryset.filter(urgency_level=urgency.lower())

        city = params.get('city')
        if city:
            queryset = queryset.filter(location__icontains=city.strip())

        return queryset

    @action(detail=True, methods=['get'])
    def matches(self, request, pk=None):
        """
        Ranked donor matches for a request.

        Query params: max_distance (km), limit, seed (enables score jitter),
        exclude_approximate (drop city-fallback locations)
        """
        emergency_request = self.get_object()

        query = MatchQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        options = query.validated_data

        seed = options.get('seed')
        matches = match_donors_for_request(
            emergency_request,
            max_distance=options.get('max_distance', settings.BLOODLINK_MAX_DISTANCE_KM),
            rng=random.Random(seed) if seed is not None else None,
            include_approximate=not options['exclude_approximate']
        )

        total_matches = len(matches)
        limit = options.get('limit')
        if limit:
            matches = matches[:limit]

        return Response({
            'request': EmergencyRequestSerializer(emergency_request).data,
            'total_matches': total_matches,
            'matches': DonorMatchSerializer(matches, many=True).data,
        })

    @action(detail=True, methods=['post'])
    def notify_donors(self, request, pk=None):
        """Match and notify donors for this request right away"""
        emergency_request = self.get_object()
        summary = notify_matched_donors(emergency_request.id)
        emergency_request.refresh_from_db()

        return Response({
            'message': summary,
            'status': emergency_request.status,
            'notified_count': emergency_request.notifications.filter(status='notified').count(),
            'total_notifications': emergency_request.notifications.count(),
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def prioritized(self, request):
        """Open requests ranked by urgency, waiting time, units and rarity"""
        open_requests = self.get_queryset().filter(status__in=OPEN_REQUEST_STATUSES)
        ranked = run_priority_algorithm(open_requests)

        return Response([
            {
                'request': EmergencyRequestSerializer(item['request']).data,
                'priority_score': item['priority_score'],
                'priority_level': item['priority_level'],
                'urgency_score': item['urgency_score'],
                'time_score': item['time_score'],
                'units_score': item['units_score'],
                'blood_rarity_score': item['blood_rarity_score'],
            }
            for item in ranked
        ])


@api_view(['GET'])
def dashboard_stats(request):
    """Get dashboard statistics"""
    cutoff = timezone.now() - timedelta(days=MIN_DONATION_INTERVAL_DAYS)

    # Donors with a recent donation that drew blood are still in their interval
    recent_donors = DonationRecord.objects.filter(
        donation_date__gt=cutoff
    ).exclude(status=DonationRecord.STATUS_REJECTED).values('donor_id')

    role_counts = dict(
        DonorProfile.objects.values_list('role').annotate(total=Count('id')).order_by()
    )
    blood_type_counts = dict(
        DonorProfile.objects.values_list('blood_type').annotate(total=Count('id')).order_by()
    )

    return Response({
        'total_donors': DonorProfile.objects.count(),
        'available_donors': DonorProfile.objects.filter(is_available=True).exclude(id__in=recent_donors).count(),
        'emergency_donors': role_counts.get('emergency_donor', 0),
        'bridge_donors': role_counts.get('bridge_donor', 0),
        'fighters': role_counts.get('fighter', 0),
        'donors_by_blood_type': blood_type_counts,
        'active_requests': EmergencyRequest.objects.filter(status__in=OPEN_REQUEST_STATUSES).count(),
        'fulfilled_requests': EmergencyRequest.objects.filter(status='fulfilled').count(),
        'pending_donations': DonationRecord.objects.filter(status=DonationRecord.STATUS_PENDING).count(),
        'completed_donations': DonationRecord.objects.filter(status=DonationRecord.STATUS_COMPLETE).count(),
        'total_donations': DonationRecord.objects.count(),
    })
