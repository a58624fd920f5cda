from datetime import date, datetime, timedelta, timezone

# Minimum whole-blood donation interval
MIN_DONATION_INTERVAL_DAYS = 56

SECONDS_PER_DAY = 24 * 60 * 60


def days_since(moment, today=None) -> int:
    """
    Whole days elapsed since `moment`, floored.

    Accepts dates, naive datetimes and aware datetimes. `today` defaults to
    the current date/time in the same flavour as `moment`.
    """
    if isinstance(moment, datetime):
        if today is None:
            today = datetime.now(timezone.utc) if moment.tzinfo else datetime.now()
        elif not isinstance(today, datetime):
            today = datetime.combine(today, datetime.min.time(), tzinfo=moment.tzinfo)
        return int((today - moment).total_seconds() // SECONDS_PER_DAY)

    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()
    return (today - moment).days


def is_eligible(last_donation_date, today=None) -> bool:
    """
    Check whether a donor may donate again.

    A donor who has never donated is always eligible; otherwise at least
    MIN_DONATION_INTERVAL_DAYS must have passed since the last donation.
    """
    if last_donation_date is None:
        return True

    return days_since(last_donation_date, today) >= MIN_DONATION_INTERVAL_DAYS


def next_eligible_date(last_donation_date):
    """Date (or datetime) from which the donor may donate again"""
    if last_donation_date is None:
        return None

    return last_donation_date + timedelta(days=MIN_DONATION_INTERVAL_DAYS)
