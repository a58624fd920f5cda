from datetime import timedelta
from types import SimpleNamespace

import pytest
from django.utils import timezone

from algorithms.haversine import CITY_COORDINATES

MUMBAI = CITY_COORDINATES['mumbai']
DELHI = CITY_COORDINATES['delhi']

# ~1 km of latitude
KM_IN_DEGREES = 1 / 111.195


def offset_north(point, km):
    """A point `km` kilometres due north of `point`"""
    return point[0] + km * KM_IN_DEGREES, point[1]


@pytest.fixture
def make_donor():
    def _make(donor_id, blood_type, latitude=None, longitude=None, city='', is_available=True):
        return SimpleNamespace(
            id=donor_id,
            blood_type=blood_type,
            latitude=latitude,
            longitude=longitude,
            city=city,
            is_available=is_available,
        )
    return _make


@pytest.fixture
def make_request():
    def _make(blood_type, latitude=MUMBAI[0], longitude=MUMBAI[1], location='Mumbai'):
        return SimpleNamespace(
            blood_type=blood_type,
            latitude=latitude,
            longitude=longitude,
            location=location,
        )
    return _make


@pytest.fixture
def make_donation():
    def _make(donor_id, days_ago, status='complete'):
        return SimpleNamespace(
            donor_id=donor_id,
            donation_date=timezone.now() - timedelta(days=days_ago),
            status=status,
        )
    return _make


@pytest.fixture(autouse=True)
def no_auto_notify(settings):
    # Individual tests opt back in
    settings.BLOODLINK_AUTO_NOTIFY_DONORS = False


@pytest.fixture
def donor_factory(db):
    from donors.models import DonorProfile

    def _create(**kwargs):
        defaults = {
            'full_name': 'Test Donor',
            'phone': '9876543210',
            'email': 'donor@example.com',
            'blood_type': 'O+',
            'city': 'Mumbai',
            'latitude': MUMBAI[0],
            'longitude': MUMBAI[1],
        }
        defaults.update(kwargs)
        return DonorProfile.objects.create(**defaults)
    return _create


@pytest.fixture
def emergency_factory(db):
    from emergencies.models import EmergencyRequest

    def _create(**kwargs):
        defaults = {
            'patient_name': 'Patient',
            'blood_type': 'A+',
            'units_required': 1,
            'urgency_level': 'high',
            'location': 'Mumbai',
            'latitude': MUMBAI[0],
            'longitude': MUMBAI[1],
            'contact_number': '9123456789',
            'hospital_name': 'KEM Hospital',
        }
        defaults.update(kwargs)
        return EmergencyRequest.objects.create(**defaults)
    return _create
