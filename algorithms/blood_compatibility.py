"""
Blood Type Compatibility Helper
Determines which donor blood types can donate to which recipient blood types
"""

BLOOD_TYPES = ['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+']

# Blood type compatibility matrix (donor -> recipients)
COMPATIBILITY = {
    'O-': ['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+'],  # Universal donor
    'O+': ['O+', 'A+', 'B+', 'AB+'],
    'A-': ['A-', 'A+', 'AB-', 'AB+'],
    'A+': ['A+', 'AB+'],
    'B-': ['B-', 'B+', 'AB-', 'AB+'],
    'B+': ['B+', 'AB+'],
    'AB-': ['AB-', 'AB+'],
    'AB+': ['AB+'],  # Universal recipient
}


def normalize_blood_type(blood_type):
    """
    Normalize a raw blood type string ('  ab+ ' -> 'AB+')

    Returns:
        The canonical blood type, or None if it is not one of the 8 types
    """
    if not isinstance(blood_type, str):
        return None

    normalized = blood_type.strip().upper()
    return normalized if normalized in COMPATIBILITY else None


def is_compatible(donor_blood_type, recipient_blood_type):
    """
    Check if donor blood type is compatible with recipient

    Donor records may be incomplete, so unknown or malformed types
    are reported as incompatible instead of raising.

    Args:
        donor_blood_type: Donor's blood type (e.g., 'O+')
        recipient_blood_type: Recipient's blood type (e.g., 'A+')

    Returns:
        Boolean: True if compatible, False otherwise
    """
    donor_blood_type = normalize_blood_type(donor_blood_type)
    recipient_blood_type = normalize_blood_type(recipient_blood_type)

    if donor_blood_type is None or recipient_blood_type is None:
        return False

    return recipient_blood_type in COMPATIBILITY[donor_blood_type]


def get_compatible_donors(recipient_blood_type):
    """Donor blood types that can give to `recipient_blood_type`, in BLOOD_TYPES order"""
    recipient_blood_type = normalize_blood_type(recipient_blood_type)
    return [donor_type for donor_type in BLOOD_TYPES if recipient_blood_type in COMPATIBILITY[donor_type]]


def get_compatible_recipients(donor_blood_type):
    """Recipient blood types `donor_blood_type` can give to (a copy)"""
    return list(COMPATIBILITY.get(normalize_blood_type(donor_blood_type), []))
