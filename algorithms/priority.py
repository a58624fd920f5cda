"""
Request Priority
Ranks open emergency requests so coordinators know which to work first.

Four 0-100 sub-scores are combined with fixed weights:
urgency tier 40%, waiting time 30%, units needed 20%, blood type rarity 10%.
"""
from django.utils import timezone

WEIGHTS = {
    'urgency': 0.40,
    'time': 0.30,
    'units': 0.20,
    'rarity': 0.10,
}

URGENCY_SCORES = {
    'critical': 100,
    'high': 75,
    'medium': 50,
    'low': 25,
}

# (minimum hours waiting, points), checked in order
WAITING_TIERS = [
    (24, 100),
    (12, 80),
    (6, 60),
    (3, 40),
    (1, 20),
]

# (minimum units, points), checked in order
UNITS_TIERS = [
    (5, 100),
    (4, 80),
    (3, 60),
    (2, 40),
]
MIN_UNITS_SCORE = 20

# Rarer blood types first; O- is the universal donor, so still scarce
BLOOD_RARITY_SCORES = {
    'AB-': 100,
    'B-': 90,
    'AB+': 80,
    'A-': 70,
    'O-': 60,
    'B+': 50,
    'A+': 40,
    'O+': 30,
}

DEFAULT_SCORE = 50

# (minimum priority score, level), checked in order
PRIORITY_LEVELS = [
    (80, 'critical'),
    (60, 'high'),
    (40, 'medium'),
]


def run_priority_algorithm(emergency_requests, now=None):
    """
    Rank emergency requests, highest priority first.

    Accepts a queryset or any iterable of objects with urgency_level,
    created_at, units_required and blood_type.

    Returns:
        List of dicts: request, priority_score, priority_level and the four
        sub-scores
    """
    if now is None:
        now = timezone.now()

    ranked = []
    for request in emergency_requests or []:
        scores = {
            'urgency': calculate_urgency_score(request.urgency_level),
            'time': calculate_time_score(request.created_at, now),
            'units': calculate_units_score(request.units_required),
            'rarity': calculate_blood_rarity_score(request.blood_type),
        }
        priority_score = round(sum(scores[key] * weight for key, weight in WEIGHTS.items()), 1)

        ranked.append({
            'request': request,
            'priority_score': priority_score,
            'priority_level': get_priority_level(priority_score),
            'urgency_score': scores['urgency'],
            'time_score': scores['time'],
            'units_score': scores['units'],
            'blood_rarity_score': scores['rarity'],
        })

    ranked.sort(key=lambda item: item['priority_score'], reverse=True)
    return ranked


def get_priority_level(priority_score):
    for threshold, level in PRIORITY_LEVELS:
        if priority_score >= threshold:
            return level
    return 'low'


def calculate_urgency_score(urgency_level):
    return URGENCY_SCORES.get((urgency_level or '').lower(), DEFAULT_SCORE)


def calculate_time_score(created_at, now=None):
    """
    Longer wait = higher score. Under an hour scores 0, a day or more 100
    """
    if now is None:
        now = timezone.now()

    if timezone.is_naive(created_at) and timezone.is_aware(now):
        created_at = timezone.make_aware(created_at)
    elif timezone.is_aware(created_at) and timezone.is_naive(now):
        now = timezone.make_aware(now)

    hours_waiting = (now - created_at).total_seconds() / 3600

    for min_hours, points in WAITING_TIERS:
        if hours_waiting >= min_hours:
            return points
    return 0


def calculate_units_score(units_required):
    for min_units, points in UNITS_TIERS:
        if units_required >= min_units:
            return points
    return MIN_UNITS_SCORE


def calculate_blood_rarity_score(blood_type):
    return BLOOD_RARITY_SCORES.get(blood_type, DEFAULT_SCORE)
