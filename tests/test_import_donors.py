from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from donors.models import DonationRecord, DonorProfile

ROSTER = """Name,Phone,Blood_Group,City,Age,Gender,Last_Donation_Date
Asha Patil,9000000001, b+ ,Pune,29,Female,2024-01-15
Ravi Kumar,9000000002,O-,Delhi,,male,
No Phone,,A+,Mumbai,30,,
Bad Type,9000000003,Z+,Mumbai,30,,
Too Young,9000000004,A+,Mumbai,15,,
"""


@pytest.fixture
def roster(tmp_path):
    path = tmp_path / 'donors.csv'
    path.write_text(ROSTER)
    return path


@pytest.mark.django_db
def test_import_creates_donors_and_skips_bad_rows(roster):
    stdout = StringIO()
    call_command('import_donors', str(roster), stdout=stdout)

    out = stdout.getvalue()
    assert 'Import complete! Created: 2, Updated: 0, Skipped: 3' in out
    assert 'Skipping row 4: Missing name or phone' in out
    assert 'Skipping row 5: Invalid blood type' in out
    assert 'Error at row 6' in out

    asha = DonorProfile.objects.get(phone='9000000001')
    assert asha.blood_type == 'B+'
    assert asha.city == 'Pune'
    assert asha.gender == 'female'
    assert asha.age == 29
    assert asha.latitude is None

    donation = DonationRecord.objects.get(donor=asha)
    assert donation.status == DonationRecord.STATUS_COMPLETE
    assert timezone.localtime(donation.donation_date).date().isoformat() == '2024-01-15'

    ravi = DonorProfile.objects.get(phone='9000000002')
    assert ravi.age is None
    assert not ravi.donations.exists()


@pytest.mark.django_db
def test_reimport_updates_without_duplicates(roster):
    call_command('import_donors', str(roster), stdout=StringIO())
    stdout = StringIO()
    call_command('import_donors', str(roster), stdout=stdout)

    assert 'Created: 0, Updated: 2, Skipped: 3' in stdout.getvalue()
    assert DonorProfile.objects.count() == 2
    assert DonationRecord.objects.count() == 1


@pytest.mark.django_db
def test_missing_file(tmp_path):
    with pytest.raises(CommandError, match='File not found'):
        call_command('import_donors', str(tmp_path / 'missing.csv'))
