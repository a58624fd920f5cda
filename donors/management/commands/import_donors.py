# donors/management/commands/import_donors.py
"""
Django management command to import a donor roster from CSV or Excel
Usage: python manage.py import_donors path/to/donors.xlsx
"""
from pathlib import Path

import pandas as pd
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from algorithms.blood_compatibility import normalize_blood_type
from donors.models import DonorProfile, DonationRecord

# Spreadsheet header -> model field; the first header present wins
COLUMN_ALIASES = {
    'full_name': ['full_name', 'name'],
    'phone': ['phone', 'phone_number', 'mobile'],
    'email': ['email'],
    'blood_type': ['blood_type', 'blood_group', 'bloodgroup'],
    'city': ['city'],
    'pincode': ['pincode'],
    'gender': ['gender'],
    'age': ['age'],
    'role': ['role'],
    'latitude': ['latitude', 'lat'],
    'longitude': ['longitude', 'lng', 'lon'],
    'last_donation_date': ['last_donation_date', 'donation_date'],
}


def read_roster(path):
    """Load a roster into a DataFrame with lower-cased, stripped headers"""
    path = Path(path)
    # Text only: a phone column with gaps would otherwise parse as float
    if path.suffix.lower() in ('.xlsx', '.xls'):
        df = pd.read_excel(path, dtype=str)
    else:
        df = pd.read_csv(path, dtype=str)

    df.columns = [str(column).strip().lower() for column in df.columns]
    return df


def pick(row, field):
    for column in COLUMN_ALIASES[field]:
        if column in row and pd.notna(row[column]):
            value = row[column]
            return value.strip() if isinstance(value, str) else value
    return None


def parse_donation_date(value):
    if value is None:
        return None
    parsed = pd.to_datetime(value).to_pydatetime()
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file'

    def add_arguments(self, parser):
        parser.add_argument('roster_file', type=str, help='Path to the CSV or Excel file')

    def handle(self, *args, **options):
        roster_file = options['roster_file']

        if not Path(roster_file).exists():
            raise CommandError(f'File not found: {roster_file}')

        self.stdout.write(self.style.WARNING(f'Starting import from {roster_file}...'))

        df = read_roster(roster_file)
        self.stdout.write(f'Found {len(df)} rows')

        imported_count = 0
        updated_count = 0
        skipped_count = 0

        with transaction.atomic():
            for index, row in df.iterrows():
                line = index + 2  # header row + 1-based
                full_name = pick(row, 'full_name')
                phone = pick(row, 'phone')
                blood_type = normalize_blood_type(pick(row, 'blood_type'))

                if not full_name or not phone:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Missing name or phone'))
                    skipped_count += 1
                    continue

                if blood_type is None:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid blood type'))
                    skipped_count += 1
                    continue

                try:
                    age = pick(row, 'age')
                    latitude = pick(row, 'latitude')
                    longitude = pick(row, 'longitude')
                    defaults = {
                        'full_name': full_name,
                        'blood_type': blood_type,
                        'email': pick(row, 'email') or '',
                        'city': pick(row, 'city') or '',
                        'pincode': str(pick(row, 'pincode') or ''),
                        'gender': (pick(row, 'gender') or '').lower(),
                        'age': int(age) if age is not None else None,
                        'latitude': float(latitude) if latitude is not None else None,
                        'longitude': float(longitude) if longitude is not None else None,
                        'is_available': True,
                    }
                    role = pick(row, 'role')
                    if role:
                        defaults['role'] = role.lower().replace(' ', '_')

                    donor = DonorProfile(phone=str(phone), **defaults)
                    donor.full_clean(exclude=['phone'], validate_unique=False)
                    donation_date = parse_donation_date(pick(row, 'last_donation_date'))
                except (ValueError, TypeError, ValidationError) as e:
                    self.stdout.write(self.style.ERROR(f'Error at row {line}: {e}'))
                    skipped_count += 1
                    continue

                donor, created = DonorProfile.objects.update_or_create(
                    phone=str(phone),
                    defaults=defaults
                )

                if donation_date is not None:
                    DonationRecord.objects.get_or_create(
                        donor=donor,
                        donation_date=donation_date,
                        defaults={'status': DonationRecord.STATUS_COMPLETE}
                    )

                if created:
                    imported_count += 1
                    self.stdout.write(f'Created: {donor.full_name} ({donor.blood_type})')
                else:
                    updated_count += 1
                    self.stdout.write(f'Updated: {donor.full_name} ({donor.blood_type})')

        self.stdout.write(
            self.style.SUCCESS(
                f'Import complete! Created: {imported_count}, '
                f'Updated: {updated_count}, Skipped: {skipped_count}'
            )
        )
