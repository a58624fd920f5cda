"""
Donor Matching
Filters a donor roster against an emergency request, scores every candidate
and returns them ranked best first.

Works on any objects exposing the expected attributes (Django models or
plain objects), so it stays independent of storage.

Donor:    id, blood_type, latitude, longitude, city, is_available
Donation: donor_id, donation_date, status
Request:  blood_type, latitude, longitude, location
"""
import logging

from algorithms.blood_compatibility import is_compatible
from algorithms.eligibility import is_eligible
from algorithms.haversine import haversine_distance, resolve_location
from algorithms.scoring import calculate_compatibility_score

DEFAULT_MAX_DISTANCE_KM = 50
DEFAULT_SHORTLIST_SIZE = 10
DONORS_PER_UNIT = 3

# Rejected donations did not draw blood, so they don't restart the interval
IGNORED_DONATION_STATUSES = {'rejected'}

logger = logging.getLogger(__name__)


def latest_donations(donations):
    """
    Map donor id -> most recent donation record (by donation_date)
    """
    latest = {}

    for donation in donations or []:
        if getattr(donation, 'status', None) in IGNORED_DONATION_STATUSES:
            continue
        current = latest.get(donation.donor_id)
        if current is None or donation.donation_date > current.donation_date:
            latest[donation.donor_id] = donation

    return latest


def donor_location(donor):
    return resolve_location(
        getattr(donor, 'latitude', None),
        getattr(donor, 'longitude', None),
        getattr(donor, 'city', ''),
    )


def request_location(emergency_request):
    return resolve_location(
        getattr(emergency_request, 'latitude', None),
        getattr(emergency_request, 'longitude', None),
        getattr(emergency_request, 'location', ''),
    )


def find_matching_donors(donors, donations, emergency_request,
                         max_distance=DEFAULT_MAX_DISTANCE_KM, rng=None,
                         include_approximate=True, today=None):
    """
    Match and rank donors for an emergency request.

    Steps:
    1. Keep active donors whose blood type is compatible
    2. Resolve coordinates (stored lat/lng, else city table)
    3. Drop donors beyond max_distance km (after rounding to 0.1 km)
    4. Derive eligibility from each donor's most recent donation
    5. Score each donor (0-100)
    6. Sort by score, then distance, then donor id

    Args:
        donors: Iterable of donor objects
        donations: Iterable of donation records for those donors
        emergency_request: The request being matched (not modified)
        max_distance: Search radius in km
        rng: Optional seeded random.Random for score jitter
        include_approximate: Keep matches whose distance relies on the
            city fallback for an unknown city
        today: Reference date for eligibility (defaults to now)

    Returns:
        List of dicts: donor, distance, last_donation, is_eligible,
        match_score, approximate_location
    """
    required_blood_type = emergency_request.blood_type
    target = request_location(emergency_request)
    last_donation_by_donor = latest_donations(donations)

    matches = []

    for donor in donors or []:
        if getattr(donor, 'is_available', True) is False:
            continue
        if not is_compatible(donor.blood_type, required_blood_type):
            continue

        origin = donor_location(donor)
        approximate = origin.approximate or target.approximate
        if approximate and not include_approximate:
            continue

        distance = haversine_distance(
            target.latitude,
            target.longitude,
            origin.latitude,
            origin.longitude
        )
        # Radius applies to the distance as displayed
        display_distance = round(distance, 1)
        if display_distance > max_distance:
            continue

        last_donation = last_donation_by_donor.get(donor.id)
        eligible = is_eligible(last_donation.donation_date if last_donation else None, today)

        matches.append({
            'donor': donor,
            'distance': display_distance,
            'last_donation': last_donation,
            'is_eligible': eligible,
            'match_score': calculate_compatibility_score(
                donor.blood_type,
                required_blood_type,
                distance,
                eligible,
                rng=rng
            ),
            'approximate_location': approximate,
        })

    matches.sort(key=lambda m: (-m['match_score'], m['distance'], str(m['donor'].id)))

    logger.info(f"{len(matches)} donors matched for {required_blood_type} request within {max_distance}km")
    return matches


def shortlist(matches, units_required=1, limit=DEFAULT_SHORTLIST_SIZE):
    """
    Top of a ranked match list: three candidates per unit, capped at `limit`
    """
    size = min(limit, max(1, units_required or 1) * DONORS_PER_UNIT)
    return matches[:size]
