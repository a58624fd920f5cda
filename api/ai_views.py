# api/ai_views.py
"""
AI endpoints: donor ranking refinement and 7-day demand prediction.

Both delegate to Azure OpenAI and only marshal prompts and replies; the
deterministic match list from algorithms.matching is always included so a
caller can fall back to it.
"""
import json
import logging
import math
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from openai import OpenAIError
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from algorithms.eligibility import days_since
from algorithms.matching import shortlist
from donors.models import DonationRecord
from emergencies.models import EmergencyRequest
from emergencies.utils import match_donors_for_request
from .llm import LLMInvalidResponse, LLMNotConfigured, SETUP_STEPS, request_json_completion
from .serializers import (
    BloodPredictionRequestSerializer,
    DonorMatchSerializer,
    SmartMatchingRequestSerializer,
)

logger = logging.getLogger(__name__)

MATCHING_SYSTEM_PROMPT = """You are an AI specialist in emergency blood donation logistics for the BloodLink platform.

Your expertise includes:
- Blood type compatibility matrices (ABO and Rh systems)
- Emergency response protocols
- Geographic optimization
- Donor reliability assessment
- Medical urgency classification

Analyze the provided donor data and emergency request to rank the donors.

CRITICAL: Respond ONLY with a valid JSON object:
{
  "analysis": {
    "urgency_assessment": "<critical/high/medium/low>",
    "compatibility_matrix": {<blood type compatibility analysis>},
    "geographic_optimization": "<strategy description>"
  },
  "ranked_donors": [
    {
      "donor_id": "<id>",
      "match_score": <0-100>,
      "priority_rank": <1-10>,
      "compatibility_reason": "<explanation>",
      "logistics_score": <0-100>,
      "availability_score": <0-100>
    }
  ],
  "recommendations": {
    "immediate_actions": [<array of actions>],
    "contact_sequence": [<array of donor IDs in contact order>],
    "estimated_response_time": "<time estimate>",
    "backup_strategies": [<array of backup plans>]
  },
  "risk_assessment": {
    "fulfillment_probability": <0-100>,
    "critical_factors": [<array of risk factors>],
    "mitigation_strategies": [<array of strategies>]
  }
}

Do not include any text outside the JSON object."""

PREDICTION_SYSTEM_PROMPT = """You are an AI assistant specializing in blood donation analytics for the BloodLink platform.

Your expertise includes:
- Blood bank inventory management
- Seasonal donation patterns
- Weather impact on donor behavior
- Emergency response protocols
- Regional healthcare data analysis

CRITICAL: Respond ONLY with a valid JSON object containing exactly these fields:
{
  "predicted_demand": <number of blood units needed in next 7 days>,
  "confidence_level": <percentage 0-100>,
  "critical_shortage_risk": <true/false>,
  "recommended_actions": [<3-5 specific action strings>],
  "optimal_collection_times": [<3-4 time slot strings>],
  "demand_breakdown": {
    "emergency": <number>,
    "scheduled_surgeries": <number>,
    "routine_needs": <number>
  },
  "risk_factors": [<risk factor strings>],
  "seasonal_adjustment": <percentage multiplier>
}

Do not include any text outside the JSON object."""

PREDICTION_REQUIRED_FIELDS = [
    'predicted_demand',
    'confidence_level',
    'critical_shortage_risk',
    'recommended_actions',
    'optimal_collection_times',
]

NOT_PROVIDED = 'Not provided'

# Rank given to donors the model did not rank
UNRANKED = 999


def not_configured_response(error):
    return Response({
        'error': str(error),
        'setup_required': True,
        'next_steps': SETUP_STEPS,
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def invalid_reply_response(error):
    return Response({
        'error': str(error),
        'details': error.detail,
        'timestamp': timezone.now().isoformat(),
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def failure_response(message, error):
    return Response({
        'error': message,
        'details': str(error),
        'timestamp': timezone.now().isoformat(),
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def success_payload(**payload):
    return {
        'success': True,
        **payload,
        'generated_at': timezone.now().isoformat(),
        'source': 'azure_openai',
        'model_used': settings.AZURE_OPENAI_DEPLOYMENT_NAME,
    }


def donor_prompt_data(match):
    """Compact donor view sent to the model (no contact details)"""
    donor = match['donor']
    last_donation = match['last_donation']
    return {
        'id': str(donor.id),
        'blood_type': donor.blood_type,
        'distance_km': match['distance'],
        'days_since_last_donation': days_since(last_donation.donation_date) if last_donation else None,
        'is_eligible': match['is_eligible'],
        'baseline_match_score': match['match_score'],
        'approximate_location': match['approximate_location'],
    }


def as_number(value, default):
    """Numeric value from a model reply, or `default` when it isn't one"""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number) if number.is_integer() else number


def reply_section(ai_analysis, key, kind=dict):
    """A top-level section of a model reply, empty unless it has the expected type"""
    value = ai_analysis.get(key)
    return value if isinstance(value, kind) else kind()


def merge_ai_ranking(matches, ai_analysis):
    """
    Attach the model's per-donor scores to the baseline matches and sort
    by AI score, then AI rank, then baseline score
    """
    ai_by_donor = {}
    for entry in reply_section(ai_analysis, 'ranked_donors', list):
        if isinstance(entry, dict) and entry.get('donor_id') is not None:
            ai_by_donor[str(entry['donor_id'])] = entry

    enhanced = []
    for match, data in zip(matches, DonorMatchSerializer(matches, many=True).data):
        ai_entry = ai_by_donor.get(str(match['donor'].id), {})
        enhanced.append({
            **data,
            'ai_match_score': as_number(ai_entry.get('match_score'), 0),
            'priority_rank': as_number(ai_entry.get('priority_rank'), UNRANKED),
            'compatibility_reason': str(ai_entry.get('compatibility_reason') or 'Standard compatibility'),
            'logistics_score': as_number(ai_entry.get('logistics_score'), 0),
            'availability_score': as_number(ai_entry.get('availability_score'), 0),
        })

    enhanced.sort(key=lambda d: (-d['ai_match_score'], d['priority_rank'], -d['match_score']))
    return enhanced


@api_view(['POST'])
def smart_matching(request):
    """Rank compatible donors for an ad hoc request with Azure OpenAI"""
    serializer = SmartMatchingRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    # Unsaved instance: matching only reads it
    emergency_request = EmergencyRequest(
        blood_type=data['blood_type'],
        urgency_level=data['urgency_level'],
        units_required=data['units_required'],
        location=data['location'],
        latitude=data['latitude'],
        longitude=data['longitude'],
    )

    try:
        matches = match_donors_for_request(emergency_request, max_distance=data.get('max_distance'))

        user_prompt = f"""Emergency Blood Request Analysis:

REQUEST DETAILS:
- Urgency Level: {data['urgency_level']}
- Required Blood Type: {data['blood_type']}
- Required Units: {data['units_required']}
- Location: {data['location'] or NOT_PROVIDED}
- Coordinates: {json.dumps({'lat': data['latitude'], 'lng': data['longitude']})}

AVAILABLE DONOR POOL:
{json.dumps([donor_prompt_data(m) for m in matches], indent=2)}

MEDICAL CONTEXT:
- Every donor listed is ABO/Rh compatible with the request
- Distance optimization is critical for emergency response
- Donors must wait 56 days between whole-blood donations
- approximate_location means the distance is based on a city estimate

Provide donor matching with analysis and recommendations."""

        ai_analysis = request_json_completion(
            MATCHING_SYSTEM_PROMPT,
            user_prompt,
            temperature=0.2,
            max_tokens=2000,
            top_p=0.9
        )
    except LLMNotConfigured as e:
        return not_configured_response(e)
    except LLMInvalidResponse as e:
        return invalid_reply_response(e)
    except OpenAIError as e:
        logger.exception('Smart matching request to Azure OpenAI failed')
        return failure_response('Failed to generate smart donor matching', e)

    enhanced = merge_ai_ranking(matches, ai_analysis)
    recommendations = reply_section(ai_analysis, 'recommendations')
    risk_assessment = reply_section(ai_analysis, 'risk_assessment')

    return Response(success_payload(recommendations={
        'total_matches': len(enhanced),
        'top_donors': shortlist(enhanced, data['units_required']),
        'urgency_level': data['urgency_level'],
        'requested_blood_type': data['blood_type'],
        'estimated_fulfillment': risk_assessment.get('fulfillment_probability', 0),
        'average_response_time': recommendations.get('estimated_response_time', 'Unknown'),
        'ai_analysis': reply_section(ai_analysis, 'analysis'),
        'immediate_actions': recommendations.get('immediate_actions') or [],
        'contact_sequence': recommendations.get('contact_sequence') or [],
        'backup_strategies': recommendations.get('backup_strategies') or [],
        'risk_assessment': risk_assessment,
    }))


def recent_donation_count(city, blood_type, days=30):
    """Donations that drew blood in the last `days` days for a city/blood type"""
    since = timezone.now() - timedelta(days=days)
    return DonationRecord.objects.filter(
        donation_date__gte=since,
        donor__city__iexact=city,
        donor__blood_type=blood_type,
    ).exclude(status=DonationRecord.STATUS_REJECTED).count()


@api_view(['POST'])
def blood_prediction(request):
    """7-day blood demand prediction from Azure OpenAI"""
    serializer = BloodPredictionRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    historical = dict(data['historical_data'])
    weather = data['weather_data']
    events = data['event_data']

    try:
        # Fill the one figure we can derive from our own records
        if 'last_month_donations' not in historical:
            historical['last_month_donations'] = recent_donation_count(data['location'], data['blood_type'])

        user_prompt = f"""Analyze this blood donation scenario:

LOCATION: {data['location']}
TARGET BLOOD TYPE: {data['blood_type']}

HISTORICAL DATA:
- Last month donations: {historical.get('last_month_donations', NOT_PROVIDED)}
- Seasonal trend: {historical.get('seasonal_trend', NOT_PROVIDED)}
- Average daily demand: {historical.get('average_daily_demand', NOT_PROVIDED)}

WEATHER CONDITIONS:
- Temperature: {weather.get('temperature', NOT_PROVIDED)} C
- Humidity: {weather.get('humidity', NOT_PROVIDED)}%
- Season: {weather.get('season', NOT_PROVIDED)}

LOCAL EVENTS:
- Upcoming festivals: {json.dumps(events.get('upcoming_festivals', []))}
- Local events: {json.dumps(events.get('local_events', []))}

Provide a 7-day blood demand prediction with specific, actionable recommendations."""

        prediction = request_json_completion(
            PREDICTION_SYSTEM_PROMPT,
            user_prompt,
            temperature=0.3,
            max_tokens=1500,
            top_p=0.95,
            required_fields=PREDICTION_REQUIRED_FIELDS
        )
    except LLMNotConfigured as e:
        return not_configured_response(e)
    except LLMInvalidResponse as e:
        return invalid_reply_response(e)
    except OpenAIError as e:
        logger.exception('Blood prediction request to Azure OpenAI failed')
        return failure_response('Failed to generate AI prediction', e)

    return Response(success_payload(prediction=prediction))
