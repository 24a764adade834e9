"""Location alias tables and normalization helpers.

Free-text locations are written many ways ("TX", "Texas", "Austin, TX",
"NYC", "Manhattan").  ``normalize_location`` expands a location into the
set of spellings that should be treated as equivalent, and the matching
helpers compare locations through those variants.  Everything here is a
pure function over static tables.
"""

import re

# ---------------------------------------------------------------------------
# Alias tables
# ---------------------------------------------------------------------------

US_STATES: dict[str, str] = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    "DC": "Washington D.C.",
}

# Lowercased full name -> abbreviation
STATE_ABBREVIATIONS: dict[str, str] = {
    name.lower(): abbr for abbr, name in US_STATES.items()
}

# Canonical city -> nicknames
CITY_ALIASES: dict[str, list[str]] = {
    "New York": ["NYC", "New York City", "Manhattan", "The Big Apple"],
    "Los Angeles": ["LA", "L.A.", "Hollywood"],
    "San Francisco": ["SF", "San Fran", "The Bay", "Bay Area"],
    "Las Vegas": ["Vegas"],
    "New Orleans": ["NOLA", "The Big Easy"],
    "Washington D.C.": ["DC", "D.C.", "Washington DC", "The District"],
    "Philadelphia": ["Philly"],
    "Fort Worth": ["Ft Worth", "Ft. Worth"],
    "Saint Louis": ["St Louis", "St. Louis"],
    "Saint Paul": ["St Paul", "St. Paul"],
    "Fort Lauderdale": ["Ft Lauderdale", "Ft. Lauderdale"],
}

COUNTRY_CODES: dict[str, str] = {
    "US": "United States",
    "USA": "United States",
    "UK": "United Kingdom",
    "GB": "United Kingdom",
    "UAE": "United Arab Emirates",
    "NZ": "New Zealand",
}

# Words in a search query that name a kind of place rather than a place.
LOCATION_KEYWORDS: tuple[str, ...] = (
    "beach",
    "mountain",
    "mountains",
    "lake",
    "island",
    "desert",
    "forest",
    "countryside",
    "downtown",
)

# Aliases this short only count when they are the whole location or a
# whole comma-separated part of it ("LA" but not "La Jolla").
_SHORT_ALIAS_LENGTH = 2

_CITY_STATE_RE = re.compile(r"^\s*([A-Za-z][A-Za-z .'-]*?)\s*,\s*([A-Za-z][A-Za-z. ]*?)\s*$")
_UPPER_TOKEN_RE = re.compile(r"\b[A-Z]{2}\b")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _contains_term(text: str, term: str) -> bool:
    """Case-insensitive containment of *term* in *text* on word boundaries."""
    pattern = r"(?<![a-z0-9])" + re.escape(term.lower()) + r"(?![a-z0-9])"
    return re.search(pattern, text.lower()) is not None


def _alias_hits(location: str, alias: str) -> bool:
    if len(alias.replace(".", "")) <= _SHORT_ALIAS_LENGTH:
        parts = [p.strip().lower() for p in location.split(",")]
        return alias.lower() in parts
    return _contains_term(location, alias)


def _location_contains(location: str, term: str) -> bool:
    """Substring containment, on word boundaries for one or two letter codes."""
    if len(term.strip()) <= _SHORT_ALIAS_LENGTH:
        return _contains_term(location, term.strip())
    return term.lower() in location.lower()


def _state_name(region: str) -> str | None:
    """Full state name for an abbreviation or name, ``None`` if not a state."""
    region = region.strip()
    if region.upper() in US_STATES:
        return US_STATES[region.upper()]
    if region.lower() in STATE_ABBREVIATIONS:
        return US_STATES[STATE_ABBREVIATIONS[region.lower()]]
    return None


class _Variants:
    """Ordered, case-insensitively de-duplicated collection of strings."""

    def __init__(self) -> None:
        self._items: list[str] = []
        self._seen: set[str] = set()

    def add(self, value: str) -> None:
        key = value.strip().lower()
        if not key or key in self._seen:
            return
        self._seen.add(key)
        self._items.append(value)

    def to_list(self) -> list[str]:
        return list(self._items)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize_location(location: str | None) -> list[str]:
    """Expand *location* into every spelling that should match it.

    The literal input is always the first element.  Empty (or whitespace
    only) input yields an empty list so callers can detect "no location".
    Duplicates are dropped case-insensitively, first occurrence wins.
    """
    if not location or not location.strip():
        return []

    variants = _Variants()
    variants.add(location)

    stripped = location.strip()
    upper = stripped.upper()
    lower = stripped.lower()

    if upper in US_STATES:
        variants.add(US_STATES[upper])
    if lower in STATE_ABBREVIATIONS:
        variants.add(STATE_ABBREVIATIONS[lower])

    for city, aliases in CITY_ALIASES.items():
        if any(_alias_hits(stripped, term) for term in (city, *aliases)):
            variants.add(city)
            for alias in aliases:
                variants.add(alias)

    if upper in COUNTRY_CODES:
        variants.add(COUNTRY_CODES[upper])

    # "City, ST" / "City, State"
    parts = [p.strip() for p in stripped.split(",")]
    if len(parts) == 2:
        city, region = parts
        region_upper = region.upper()
        region_lower = region.lower()
        if region_upper in US_STATES:
            variants.add(f"{city}, {US_STATES[region_upper]}")
        elif region_lower in STATE_ABBREVIATIONS:
            variants.add(f"{city}, {STATE_ABBREVIATIONS[region_lower]}")

    return variants.to_list()


def location_matches(search_term: str | None, candidate_location: str | None) -> bool:
    """Whether a location filter *search_term* matches *candidate_location*.

    True when some variant of the search term occurs in the candidate's
    location, or the search term occurs in some variant of the candidate's
    location.  Checking both directions makes "TX" match "Austin, Texas"
    and "Texas" match "Austin, TX".  Two-letter codes only match whole
    words, so "CA" does not match "Chicago, IL".
    """
    if not search_term or not candidate_location:
        return False
    if not search_term.strip() or not candidate_location.strip():
        return False

    for variant in normalize_location(search_term):
        if _location_contains(candidate_location, variant):
            return True

    for variant in normalize_location(candidate_location):
        if _location_contains(variant, search_term.strip()):
            return True

    return False


def locations_match(first: str | None, second: str | None) -> bool:
    """Whether two stored locations refer to the same place (any variant overlap)."""
    if not first or not second:
        return False

    first_variants = [v.lower() for v in normalize_location(first)]
    second_variants = [v.lower() for v in normalize_location(second)]
    for a in first_variants:
        for b in second_variants:
            if a in b or b in a:
                return True
    return False


def format_location_for_display(location: str | None) -> str:
    """Standardize "City, State" to "City, ST"; anything else is returned as-is."""
    if not location:
        return ""

    parts = [p.strip() for p in location.split(",")]
    if len(parts) == 2:
        city, region = parts
        if region.upper() in US_STATES:
            return f"{city}, {region.upper()}"
        if region.lower() in STATE_ABBREVIATIONS:
            return f"{city}, {STATE_ABBREVIATIONS[region.lower()]}"
    return location


def extract_state(location: str | None) -> str | None:
    """Return the state/region part of *location*.

    Abbreviations are expanded to the full state name.  For "City, Region"
    input an unknown region is returned verbatim; a bare string is only
    treated as a region when it is a known state.
    """
    if not location:
        return None

    parts = [p.strip() for p in location.split(",")]
    if len(parts) >= 2:
        region = parts[1]
        if region.upper() in US_STATES:
            return US_STATES[region.upper()]
        return region

    return _state_name(location)


def same_state_locations(location: str | None, all_locations: list[str]) -> list[str]:
    """Locations from *all_locations* in the same state as *location* (excluding itself)."""
    state = extract_state(location)
    if not state:
        return []

    same: list[str] = []
    for other in all_locations:
        if other == location:
            continue
        other_state = extract_state(other)
        if other_state and other_state.lower() == state.lower():
            same.append(other)
    return same


def extract_location_hint(query: str | None) -> str | None:
    """Best-effort guess at the place a search query is about.

    Checked in order: a "City, ST" shaped query, a known city name or
    nickname, a full state name, an upper-case state abbreviation, then
    a generic place keyword such as "beach".  Returns ``None`` when
    nothing looks like a location.
    """
    if not query or not query.strip():
        return None
    text = query.strip()

    match = _CITY_STATE_RE.match(text)
    if match and _state_name(match.group(2)) is not None:
        return f"{match.group(1)}, {match.group(2)}"

    for city, aliases in CITY_ALIASES.items():
        if any(_alias_hits(text, term) for term in (city, *aliases)):
            return city

    for name_lower, abbr in STATE_ABBREVIATIONS.items():
        if _contains_term(text, name_lower):
            return US_STATES[abbr]

    # Lower-case "in", "or", "me" are ordinary words, so only upper-case
    # tokens are read as abbreviations.
    for token in _UPPER_TOKEN_RE.findall(text):
        if token in US_STATES:
            return US_STATES[token]

    for keyword in LOCATION_KEYWORDS:
        if _contains_term(text, keyword):
            return keyword

    return None
