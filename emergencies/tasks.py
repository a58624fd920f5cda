# emergencies/tasks.py
"""
Celery tasks for donor notifications
"""
import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

from algorithms.matching import shortlist
from .models import EmergencyRequest, DonorNotification
from .utils import match_donors_for_request, send_match_notification

logger = logging.getLogger(__name__)


@shared_task
def notify_matched_donors(emergency_request_id):
    """
    Match donors for a request and notify the shortlisted, eligible ones.

    Donors already notified for the request are skipped, so the task can be
    re-run safely. Returns a short summary string.
    """
    try:
        emergency_request = EmergencyRequest.objects.get(id=emergency_request_id)
    except EmergencyRequest.DoesNotExist:
        logger.warning(f"Emergency request {emergency_request_id} not found")
        return f"Emergency request {emergency_request_id} not found"

    if emergency_request.status not in ('pending', 'matched'):
        return f"Request {emergency_request_id} is {emergency_request.status}, nothing to do"

    matches = [m for m in match_donors_for_request(emergency_request) if m['is_eligible']]
    candidates = shortlist(matches, emergency_request.units_required)

    already_notified = set(
        emergency_request.notifications.values_list('donor_id', flat=True)
    )

    created = []
    with transaction.atomic():
        for priority_order, match in enumerate(candidates, start=1):
            donor = match['donor']
            if donor.id in already_notified:
                continue
            created.append(DonorNotification.objects.create(
                donor=donor,
                emergency_request=emergency_request,
                match_score=match['match_score'],
                distance=match['distance'],
                priority_order=priority_order,
                status='pending'
            ))

        if candidates and emergency_request.status == 'pending':
            emergency_request.status = 'matched'
            emergency_request.save(update_fields=['status', 'updated_at'])

    sent = 0
    for notification in created:
        try:
            delivered = send_match_notification(notification)
        except OSError:
            # SMTPException is an OSError; the notification stays pending
            logger.exception(f"Email to donor {notification.donor_id} failed")
            continue
        if delivered:
            notification.status = 'notified'
            notification.notified_at = timezone.now()
            notification.save(update_fields=['status', 'notified_at'])
            sent += 1

    logger.info(f"Request {emergency_request_id}: {len(created)} notifications created, {sent} emails sent")
    return f"Notified {sent} of {len(created)} new donors for request {emergency_request_id}"
