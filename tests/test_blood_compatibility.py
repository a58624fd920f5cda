import pytest

from algorithms.blood_compatibility import (
    BLOOD_TYPES,
    get_compatible_donors,
    get_compatible_recipients,
    is_compatible,
    normalize_blood_type,
)

# Standard "can receive from" table, written independently of COMPATIBILITY
RECEIVES_FROM = {
    'O-': {'O-'},
    'O+': {'O-', 'O+'},
    'A-': {'O-', 'A-'},
    'A+': {'O-', 'O+', 'A-', 'A+'},
    'B-': {'O-', 'B-'},
    'B+': {'O-', 'O+', 'B-', 'B+'},
    'AB-': {'O-', 'A-', 'B-', 'AB-'},
    'AB+': set(BLOOD_TYPES),
}


@pytest.mark.parametrize('donor', BLOOD_TYPES)
@pytest.mark.parametrize('recipient', BLOOD_TYPES)
def test_matches_transfusion_table(donor, recipient):
    assert is_compatible(donor, recipient) == (donor in RECEIVES_FROM[recipient])


def test_known_pairs():
    assert is_compatible('O-', 'AB+')
    assert not is_compatible('AB+', 'O-')
    assert is_compatible('A+', 'A+')


def test_universal_donor_and_recipient():
    assert all(is_compatible('O-', recipient) for recipient in BLOOD_TYPES)
    assert all(is_compatible(donor, 'AB+') for donor in BLOOD_TYPES)


def test_rh_positive_never_gives_to_rh_negative():
    for donor in ['O+', 'A+', 'B+', 'AB+']:
        for recipient in ['O-', 'A-', 'B-', 'AB-']:
            assert not is_compatible(donor, recipient)


@pytest.mark.parametrize('bad', [None, '', 'C+', 'A', 'O positive', 42, 'AB+-'])
def test_malformed_types_fail_closed(bad):
    assert is_compatible(bad, 'AB+') is False
    assert is_compatible('O-', bad) is False


def test_input_is_normalized():
    assert normalize_blood_type(' ab- ') == 'AB-'
    assert is_compatible(' o- ', 'a+')


def test_compatible_donors_and_recipients():
    assert sorted(get_compatible_donors('AB-')) == sorted(['O-', 'A-', 'B-', 'AB-'])
    assert get_compatible_recipients('AB+') == ['AB+']
    assert get_compatible_donors('XX') == []
    assert get_compatible_recipients(None) == []
