# emergencies/signals.py
"""
Signals to automatically notify donors when an emergency request is created
"""
from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import EmergencyRequest
from .tasks import notify_matched_donors


@receiver(post_save, sender=EmergencyRequest)
def auto_notify_donors(sender, instance, created, **kwargs):
    """
    Queue donor notifications once a new pending request is committed
    """
    if not settings.BLOODLINK_AUTO_NOTIFY_DONORS:
        return

    if created and instance.status == 'pending':
        transaction.on_commit(lambda: notify_matched_donors.delay(instance.id))
