from datetime import date, datetime, timedelta, timezone

from algorithms.eligibility import (
    MIN_DONATION_INTERVAL_DAYS,
    days_since,
    is_eligible,
    next_eligible_date,
)


def test_never_donated_is_eligible():
    assert is_eligible(None)


def test_exactly_56_days_ago_is_eligible():
    assert is_eligible(date.today() - timedelta(days=56))
    assert is_eligible(datetime.now(timezone.utc) - timedelta(days=56))
    assert is_eligible(datetime.now() - timedelta(days=56))


def test_55_days_ago_is_not_eligible():
    assert not is_eligible(date.today() - timedelta(days=55))
    assert not is_eligible(datetime.now(timezone.utc) - timedelta(days=55))


def test_days_since_floors_partial_days():
    now = datetime(2024, 3, 10, 12, 0)
    assert days_since(datetime(2024, 3, 9, 12, 1), now) == 0
    assert days_since(datetime(2024, 3, 9, 12, 0), now) == 1
    assert days_since(datetime(2024, 1, 1, 23, 59), now) == 68


def test_days_since_with_explicit_today():
    today = date(2024, 5, 1)
    assert days_since(date(2024, 3, 6), today) == 56
    assert is_eligible(date(2024, 3, 6), today)
    assert not is_eligible(date(2024, 3, 7), today)


def test_days_since_mixes_datetime_and_date_reference():
    moment = datetime(2024, 3, 6, 0, 0, tzinfo=timezone.utc)
    assert days_since(moment, date(2024, 5, 1)) == 56


def test_next_eligible_date():
    assert next_eligible_date(None) is None
    assert next_eligible_date(date(2024, 1, 1)) == date(2024, 1, 1) + timedelta(days=MIN_DONATION_INTERVAL_DAYS)
