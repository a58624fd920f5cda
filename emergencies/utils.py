import logging

from django.conf import settings
from django.core.mail import send_mail

from algorithms.blood_compatibility import get_compatible_donors
from algorithms.matching import find_matching_donors
from donors.models import DonorProfile, DonationRecord

logger = logging.getLogger(__name__)


def match_donors_for_request(emergency_request, max_distance=None, rng=None, include_approximate=True):
    """
    Load the candidate roster for a request and rank it.

    Only available donors of a compatible blood type are fetched; the
    matching core still applies every rule itself.
    """
    if max_distance is None:
        max_distance = settings.BLOODLINK_MAX_DISTANCE_KM

    donors = list(DonorProfile.objects.filter(
        is_available=True,
        blood_type__in=get_compatible_donors(emergency_request.blood_type)
    ))
    donations = DonationRecord.objects.filter(donor__in=donors).exclude(
        status=DonationRecord.STATUS_REJECTED
    )

    matches = find_matching_donors(
        donors,
        donations,
        emergency_request,
        max_distance=max_distance,
        rng=rng,
        include_approximate=include_approximate
    )

    logger.info(f"{len(matches)} donors matched for emergency request {emergency_request.id}")
    return matches


def send_match_notification(notification):
    """
    Email a donor about an emergency request they were matched to.
    Returns True when an email was handed to the mail backend.
    """
    donor = notification.donor
    emergency_request = notification.emergency_request

    if not donor.email:
        logger.info(f"Donor {donor.id} has no email, skipping notification for request {emergency_request.id}")
        return False

    distance = f"{notification.distance:.1f}km from you" if notification.distance is not None else "distance unknown"
    message = f"""
URGENT BLOOD NEEDED

Patient: {emergency_request.patient_name}
Hospital: {emergency_request.hospital_name or emergency_request.location}
Blood Type: {emergency_request.blood_type}
Units: {emergency_request.units_required}
Urgency: {emergency_request.urgency_level.upper()}
Contact: {emergency_request.contact_number}
Distance: {distance}

Match Score: {notification.match_score}/100
You are Priority #{notification.priority_order}

Thank you for being a lifesaver!
BloodLink
    """.strip()

    send_mail(
        subject=f"Emergency Blood Request - {emergency_request.blood_type} needed",
        message=message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[donor.email],
        fail_silently=False,
    )
    logger.info(f"Notification sent to donor {donor.id} ({donor.phone}) for request {emergency_request.id}")
    return True
