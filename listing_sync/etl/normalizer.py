"""Field normalization for raw scraped listing values.

Every function here is total: bad input degrades to a default instead of
raising, since scraped data is routinely incomplete.
"""

import re
from typing import Dict, Iterable, List, Optional, Union

_INT_PREFIX = re.compile(r'^\s*([+-]?\d+)')
_FLOAT_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_EXTERNAL_ID = re.compile(r'-(\d{6,})/')
_MARKET_SLUG = re.compile(r'^[a-z-]+-[a-z]{2}$')

DEFAULT_PROPERTY_TYPE = "house"

# Checked in order, first hit wins
_PROPERTY_TYPE_KEYWORDS = [
    (('single family', 'house'), 'house'),
    (('apartment',), 'apartment'),
    (('townhouse',), 'townhouse'),
    (('condo',), 'condo'),
]


def parse_int_prefix(text: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a string ("3 beds" -> 3)."""
    if not text:
        return None
    match = _INT_PREFIX.match(str(text))
    return int(match.group(1)) if match else None


def parse_float_prefix(text: Optional[str]) -> Optional[float]:
    """Parse the leading decimal number of a string ("2.5 baths" -> 2.5)."""
    if not text:
        return None
    match = _FLOAT_PREFIX.match(str(text))
    return float(match.group(1)) if match else None


def is_valid_market(source_market: Optional[str]) -> bool:
    """Check the city-state slug format, e.g. "birmingham-al"."""
    return bool(source_market and _MARKET_SLUG.match(source_market))


def parse_city_state(city_state_slug: str) -> Dict[str, str]:
    """Split a market slug like "san-antonio-tx" into city and state.

    Args:
        city_state_slug: Hyphenated city words followed by a state code

    Returns:
        Dict[str, str]: {"city": "San Antonio", "state": "TX"}
    """
    parts = (city_state_slug or '').split('-')
    state = parts.pop().upper() if parts else ''
    city = re.sub(r'\b\w', lambda m: m.group(0).upper(), ' '.join(parts))
    return {'city': city, 'state': state}


def parse_price(rent: Optional[str]) -> int:
    """Parse a rent string like "$1,200" into 1200, or 0 when not numeric."""
    cleaned = re.sub(r'[$,]', '', rent or '')
    price = parse_int_prefix(cleaned)
    return price if price is not None else 0


def parse_square_feet(square_feet: Optional[str]) -> Optional[int]:
    """Parse "1,200" into 1200; blank or non-numeric input gives None."""
    if not square_feet or not square_feet.strip():
        return None

    cleaned = re.sub(r'[,\s]', '', square_feet)
    return parse_int_prefix(cleaned)


def parse_bedrooms(bedrooms: Optional[str]) -> int:
    return parse_int_prefix(bedrooms) or 0


def parse_bathrooms(bathrooms: Optional[str]) -> float:
    return parse_float_prefix(bathrooms) or 0.0


def standardize_property_type(property_type: Optional[str]) -> str:
    """Map free-text property types onto the supported set.

    Most scraped inventory is single-family, so unknown types become houses.
    """
    value = (property_type or '').lower()
    for keywords, standardized in _PROPERTY_TYPE_KEYWORDS:
        if any(keyword in value for keyword in keywords):
            return standardized
    return DEFAULT_PROPERTY_TYPE


def generate_external_id(url: str) -> str:
    """Derive the listing id from its URL.

    Listing URLs usually end in "...-1234567/", otherwise the digits of the
    last path segment are used.
    """
    match = _EXTERNAL_ID.search(url or '')
    if match:
        return match.group(1)
    last_segment = (url or '').split('/')[-1]
    return re.sub(r'[^0-9]', '', last_segment)


def normalize_features(features: Union[str, Iterable[str], None]) -> List[str]:
    """Collapse the string or list forms of the features field into a list."""
    if features is None:
        return []
    if isinstance(features, str):
        stripped = features.strip()
        return [stripped] if stripped else []
    return [str(feature).strip() for feature in features if feature is not None and str(feature).strip()]


def build_description(description: Optional[str],
                      availability: Optional[str] = None,
                      features: Optional[List[str]] = None) -> str:
    """Append availability and features sections to a listing description.

    Args:
        description: Scraped description text
        availability: Availability text, e.g. "Now"
        features: Feature names

    Returns:
        str: "Nice place\\n\\nAvailable: Now\\n\\nFeatures: Pool, Gym"
    """
    text = description or ''

    if availability:
        text += ('\n\n' if text else '') + f'Available: {availability}'

    features_text = ', '.join(normalize_features(features))
    if features_text:
        text += ('\n\n' if text else '') + f'Features: {features_text}'

    return text.strip()


def slugify_address(address: Optional[str]) -> str:
    """Turn an address into a storage-safe path segment."""
    slug = re.sub(r'[^a-zA-Z0-9]+', '_', address or '').lower()
    return slug.strip('_')


def compose_full_address(address: str, city: str, state: str, zip_code: Optional[str] = None) -> str:
    """Build the "street, city, state zip" form sent to the geocoder."""
    return f"{address}, {city}, {state} {zip_code or ''}".strip()
