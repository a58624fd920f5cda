"""
Donor Match Scoring
Additive 0-100 score combining blood compatibility, proximity and eligibility
"""
from algorithms.blood_compatibility import is_compatible, normalize_blood_type

MAX_SCORE = 100

COMPATIBILITY_POINTS = 40
EXACT_MATCH_POINTS = 10
ELIGIBILITY_POINTS = 20
MAX_JITTER_POINTS = 9

# (max distance in km, points), checked in order
DISTANCE_TIERS = [
    (5, 30),
    (10, 25),
    (20, 20),
    (50, 10),
]


def calculate_distance_score(distance_km):
    """
    Points for proximity. Beyond the last tier (or unknown distance) = 0
    """
    if distance_km is None:
        return 0

    for max_distance, points in DISTANCE_TIERS:
        if distance_km <= max_distance:
            return points
    return 0


def calculate_compatibility_score(donor_blood_type, required_blood_type, distance_km,
                                  is_eligible, rng=None) -> int:
    """
    Score how well a donor fits a request (0-100)

    Breakdown:
    - 40 points for a compatible blood type (incompatible pairs score 0)
    - 10 bonus points for an exact blood type match
    - up to 30 points for distance (see DISTANCE_TIERS)
    - 20 points if the donor is currently eligible
    - 0-9 jitter points, only when a seeded `random.Random` is passed

    Args:
        donor_blood_type: Donor's blood type
        required_blood_type: Blood type requested
        distance_km: Distance between donor and request, or None
        is_eligible: Whether the donor may donate now
        rng: Optional random.Random used for display jitter

    Returns:
        Integer score between 0 and 100
    """
    if not is_compatible(donor_blood_type, required_blood_type):
        return 0

    score = COMPATIBILITY_POINTS

    if normalize_blood_type(donor_blood_type) == normalize_blood_type(required_blood_type):
        score += EXACT_MATCH_POINTS

    score += calculate_distance_score(distance_km)

    if is_eligible:
        score += ELIGIBILITY_POINTS

    if rng is not None:
        score += rng.randint(0, MAX_JITTER_POINTS)

    return max(0, min(score, MAX_SCORE))
