from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from donors.models import DonationRecord, DonorProfile
from emergencies.models import DonorNotification, EmergencyRequest
from tests.conftest import DELHI, MUMBAI, offset_north


@pytest.fixture
def api_client():
    return APIClient()


# ---------------------------
# Donors
# ---------------------------
@pytest.mark.django_db
def test_register_donor_normalizes_blood_type(api_client):
    response = api_client.post(reverse('api:donor-list'), {
        'full_name': 'Asha Patil',
        'phone': '9000000001',
        'blood_type': ' o- ',
        'city': 'Pune',
    }, format='json')

    assert response.status_code == 201
    assert response.data['blood_type'] == 'O-'
    assert response.data['can_donate'] is True
    assert response.data['last_donation_date'] is None
    assert DonorProfile.objects.get(phone='9000000001').blood_type == 'O-'


@pytest.mark.django_db
def test_register_donor_rejects_bad_input(api_client):
    url = reverse('api:donor-list')

    bad_type = api_client.post(url, {'full_name': 'X', 'phone': '1', 'blood_type': 'C+'}, format='json')
    half_coordinates = api_client.post(url, {
        'full_name': 'X', 'phone': '1', 'blood_type': 'A+', 'latitude': 19.0,
    }, format='json')

    assert bad_type.status_code == 400
    assert 'blood_type' in bad_type.data
    assert half_coordinates.status_code == 400
    assert DonorProfile.objects.count() == 0


def test_donor_filters(api_client, donor_factory):
    donor_factory(full_name='A', blood_type='A+', city='Mumbai')
    donor_factory(full_name='B', blood_type='B+', city='Delhi')
    donor_factory(full_name='C', blood_type='A+', city='Delhi', is_available=False)
    url = reverse('api:donor-list')

    by_type = api_client.get(url, {'blood_type': 'a+'})
    by_city = api_client.get(url, {'city': 'delhi'})
    available = api_client.get(url, {'available': 'true'})

    assert sorted(d['full_name'] for d in by_type.data) == ['A', 'C']
    assert sorted(d['full_name'] for d in by_city.data) == ['B', 'C']
    assert sorted(d['full_name'] for d in available.data) == ['A', 'B']


def test_donor_donation_history(api_client, donor_factory):
    donor = donor_factory()
    now = timezone.now()
    older = DonationRecord.objects.create(donor=donor, donation_date=now - timedelta(days=200))
    newer = DonationRecord.objects.create(donor=donor, donation_date=now - timedelta(days=10))

    response = api_client.get(reverse('api:donor-donations', args=[donor.id]))

    assert response.status_code == 200
    assert [d['id'] for d in response.data] == [newer.id, older.id]


# ---------------------------
# Donations
# ---------------------------
def test_record_donation_starts_pending(api_client, donor_factory):
    donor = donor_factory()

    response = api_client.post(reverse('api:donation-list'), {
        'donor': donor.id,
        'donation_type': 'voluntary',
        'status': 'complete',
    }, format='json')

    assert response.status_code == 201
    assert response.data['status'] == 'pending'
    assert response.data['next_eligible_date'] is not None


def test_complete_then_reject_is_refused(api_client, donor_factory):
    record = DonationRecord.objects.create(donor=donor_factory())

    completed = api_client.post(reverse('api:donation-complete', args=[record.id]))
    rejected = api_client.post(reverse('api:donation-reject', args=[record.id]))

    assert completed.status_code == 200
    assert completed.data['status'] == 'complete'
    assert rejected.status_code == 400
    assert 'error' in rejected.data
    record.refresh_from_db()
    assert record.status == 'complete'


def test_donation_filters(api_client, donor_factory):
    first = donor_factory(phone='1')
    second = donor_factory(phone='2')
    DonationRecord.objects.create(donor=first, status='complete')
    DonationRecord.objects.create(donor=second)

    by_donor = api_client.get(reverse('api:donation-list'), {'donor': first.id})
    pending = api_client.get(reverse('api:donation-list'), {'status': 'pending'})

    assert [d['donor'] for d in by_donor.data] == [first.id]
    assert [d['donor'] for d in pending.data] == [second.id]


# ---------------------------
# Emergency requests
# ---------------------------
@pytest.mark.django_db
def test_create_request_is_pending(api_client):
    response = api_client.post(reverse('api:emergency-request-list'), {
        'patient_name': 'R. Shah',
        'blood_type': 'ab-',
        'units_required': 2,
        'urgency_level': 'critical',
        'location': 'Mumbai',
        'contact_number': '9123456789',
        'status': 'fulfilled',
    }, format='json')

    assert response.status_code == 201
    assert response.data['blood_type'] == 'AB-'
    assert response.data['status'] == 'pending'


@pytest.fixture
def matching_roster(donor_factory):
    near = offset_north(MUMBAI, 1)
    return {
        'exact': donor_factory(full_name='Exact', phone='1', blood_type='A+',
                               latitude=near[0], longitude=near[1]),
        'universal': donor_factory(full_name='Universal', phone='2', blood_type='O-',
                                   latitude=offset_north(MUMBAI, 3)[0], longitude=MUMBAI[1]),
        'incompatible': donor_factory(full_name='Incompatible', phone='3', blood_type='B+'),
        'far': donor_factory(full_name='Far', phone='4', blood_type='A+',
                             latitude=DELHI[0], longitude=DELHI[1]),
        'inactive': donor_factory(full_name='Inactive', phone='5', blood_type='A+', is_available=False),
        'no_coordinates': donor_factory(full_name='City only', phone='6', blood_type='O+',
                                        latitude=None, longitude=None, city='Atlantis'),
    }


def test_matches_ranked(api_client, emergency_factory, matching_roster):
    emergency_request = emergency_factory(blood_type='A+')

    response = api_client.get(reverse('api:emergency-request-matches', args=[emergency_request.id]))

    assert response.status_code == 200
    names = [m['donor']['full_name'] for m in response.data['matches']]
    # Unknown city falls back to Mumbai, 0 km from the request
    assert names == ['Exact', 'City only', 'Universal']
    assert response.data['total_matches'] == 3
    first = response.data['matches'][0]
    assert first['match_score'] == 100
    assert first['distance'] == 1.0
    assert first['is_eligible'] is True
    assert first['approximate_location'] is False
    assert response.data['matches'][1]['approximate_location'] is True


def test_matches_query_params(api_client, emergency_factory, matching_roster):
    emergency_request = emergency_factory(blood_type='A+')
    url = reverse('api:emergency-request-matches', args=[emergency_request.id])

    limited = api_client.get(url, {'limit': 1})
    assert limited.data['total_matches'] == 3
    assert len(limited.data['matches']) == 1

    exact_only = api_client.get(url, {'exclude_approximate': 'true'})
    assert [m['donor']['full_name'] for m in exact_only.data['matches']] == ['Exact', 'Universal']

    wide = api_client.get(url, {'max_distance': 2000, 'exclude_approximate': 'true'})
    assert 'Far' in [m['donor']['full_name'] for m in wide.data['matches']]

    first = api_client.get(url, {'seed': 7})
    second = api_client.get(url, {'seed': 7})
    assert first.data['matches'] == second.data['matches']

    assert api_client.get(url, {'limit': 0}).status_code == 400


def test_matches_for_rare_type_can_be_empty(api_client, emergency_factory, donor_factory):
    donor_factory(phone='1', blood_type='A+')
    donor_factory(phone='2', blood_type='B+')
    emergency_request = emergency_factory(blood_type='AB-')

    response = api_client.get(reverse('api:emergency-request-matches', args=[emergency_request.id]))

    assert response.status_code == 200
    assert response.data['total_matches'] == 0
    assert response.data['matches'] == []


def test_recent_donor_ranked_lower(api_client, emergency_factory, donor_factory):
    rested = donor_factory(full_name='Rested', phone='1', blood_type='A+')
    recent = donor_factory(full_name='Recent', phone='2', blood_type='A+')
    DonationRecord.objects.create(donor=recent, donation_date=timezone.now() - timedelta(days=5), status='complete')
    DonationRecord.objects.create(donor=rested, donation_date=timezone.now() - timedelta(days=2), status='rejected')
    emergency_request = emergency_factory(blood_type='A+')

    response = api_client.get(reverse('api:emergency-request-matches', args=[emergency_request.id]))

    matches = response.data['matches']
    assert [m['donor']['full_name'] for m in matches] == ['Rested', 'Recent']
    assert matches[0]['last_donation'] is None
    assert matches[1]['is_eligible'] is False
    assert matches[1]['last_donation']['status'] == 'complete'


def test_notify_donors(api_client, emergency_factory, donor_factory, mailoutbox):
    for i in range(3):
        donor_factory(phone=str(i), email=f'donor{i}@example.com', blood_type='O-')
    donor_factory(phone='9', email='', blood_type='A+')
    emergency_request = emergency_factory(blood_type='A+', units_required=2)

    response = api_client.post(reverse('api:emergency-request-notify-donors', args=[emergency_request.id]))

    assert response.status_code == 200
    assert response.data['status'] == 'matched'
    assert response.data['total_notifications'] == 4
    assert response.data['notified_count'] == 3
    assert len(mailoutbox) == 3
    assert mailoutbox[0].subject == 'Emergency Blood Request - A+ needed'
    orders = list(DonorNotification.objects.values_list('priority_order', flat=True))
    assert orders == [1, 2, 3, 4]


def test_prioritized_lists_open_requests(api_client, emergency_factory):
    low = emergency_factory(urgency_level='low', blood_type='O+')
    critical = emergency_factory(urgency_level='critical', blood_type='AB-', units_required=5)
    emergency_factory(urgency_level='critical', status='fulfilled')

    response = api_client.get(reverse('api:emergency-request-prioritized'))

    assert response.status_code == 200
    assert [item['request']['id'] for item in response.data] == [critical.id, low.id]
    assert response.data[0]['priority_score'] > response.data[1]['priority_score']


def test_request_filters(api_client, emergency_factory):
    emergency_factory(blood_type='O+', location='Navi Mumbai', urgency_level='low')
    emergency_factory(blood_type='A+', location='Delhi', urgency_level='critical')
    url = reverse('api:emergency-request-list')

    assert len(api_client.get(url, {'city': 'mumbai'}).data) == 1
    assert len(api_client.get(url, {'urgency': 'CRITICAL'}).data) == 1
    assert len(api_client.get(url, {'blood_type': 'o+'}).data) == 1
    assert len(api_client.get(url, {'status': 'all'}).data) == 2


# ---------------------------
# Stats
# ---------------------------
def test_dashboard_stats(api_client, donor_factory, emergency_factory):
    resting = donor_factory(phone='1', role='bridge_donor', blood_type='B+')
    donor_factory(phone='2', role='fighter', blood_type='O+')
    donor_factory(phone='3', is_available=False)
    DonationRecord.objects.create(donor=resting, status='complete')
    DonationRecord.objects.create(donor=resting, donation_date=timezone.now() - timedelta(days=300))
    emergency_factory()
    emergency_factory(status='fulfilled')
    assert EmergencyRequest.objects.count() == 2

    response = api_client.get(reverse('api:dashboard-stats'))

    assert response.status_code == 200
    data = response.data
    assert data['total_donors'] == 3
    assert data['available_donors'] == 1
    assert data['emergency_donors'] == 1
    assert data['bridge_donors'] == 1
    assert data['fighters'] == 1
    assert data['donors_by_blood_type'] == {'B+': 1, 'O+': 2}
    assert data['active_requests'] == 1
    assert data['fulfilled_requests'] == 1
    assert data['pending_donations'] == 1
    assert data['completed_donations'] == 1
    assert data['total_donations'] == 2
