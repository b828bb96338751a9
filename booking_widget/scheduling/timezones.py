"""Catalogue of common visitor timezones with city/region labels."""

from typing import NamedTuple


class TimezoneEntry(NamedTuple):
    value: str
    label: str
    region: str


TIMEZONES: list[TimezoneEntry] = [
    # North America
    TimezoneEntry("America/New_York", "New York", "US"),
    TimezoneEntry("America/Chicago", "Chicago", "US"),
    TimezoneEntry("America/Denver", "Denver", "US"),
    TimezoneEntry("America/Los_Angeles", "Los Angeles", "US"),
    TimezoneEntry("America/Anchorage", "Anchorage", "US"),
    TimezoneEntry("Pacific/Honolulu", "Honolulu", "US"),
    TimezoneEntry("America/Phoenix", "Phoenix", "US"),
    TimezoneEntry("America/Detroit", "Detroit", "US"),
    TimezoneEntry("America/Toronto", "Toronto", "Canada"),
    TimezoneEntry("America/Vancouver", "Vancouver", "Canada"),
    TimezoneEntry("America/Montreal", "Montreal", "Canada"),
    TimezoneEntry("America/Mexico_City", "Mexico City", "Mexico"),
    # Europe
    TimezoneEntry("Europe/London", "London", "UK"),
    TimezoneEntry("Europe/Paris", "Paris", "France"),
    TimezoneEntry("Europe/Berlin", "Berlin", "Germany"),
    TimezoneEntry("Europe/Madrid", "Madrid", "Spain"),
    TimezoneEntry("Europe/Rome", "Rome", "Italy"),
    TimezoneEntry("Europe/Amsterdam", "Amsterdam", "Netherlands"),
    TimezoneEntry("Europe/Brussels", "Brussels", "Belgium"),
    TimezoneEntry("Europe/Vienna", "Vienna", "Austria"),
    TimezoneEntry("Europe/Zurich", "Zurich", "Switzerland"),
    TimezoneEntry("Europe/Stockholm", "Stockholm", "Sweden"),
    TimezoneEntry("Europe/Oslo", "Oslo", "Norway"),
    TimezoneEntry("Europe/Copenhagen", "Copenhagen", "Denmark"),
    TimezoneEntry("Europe/Helsinki", "Helsinki", "Finland"),
    TimezoneEntry("Europe/Dublin", "Dublin", "Ireland"),
    TimezoneEntry("Europe/Lisbon", "Lisbon", "Portugal"),
    TimezoneEntry("Europe/Warsaw", "Warsaw", "Poland"),
    TimezoneEntry("Europe/Prague", "Prague", "Czech Republic"),
    TimezoneEntry("Europe/Budapest", "Budapest", "Hungary"),
    TimezoneEntry("Europe/Athens", "Athens", "Greece"),
    TimezoneEntry("Europe/Moscow", "Moscow", "Russia"),
    TimezoneEntry("Europe/Istanbul", "Istanbul", "Turkey"),
    # Asia
    TimezoneEntry("Asia/Tokyo", "Tokyo", "Japan"),
    TimezoneEntry("Asia/Seoul", "Seoul", "South Korea"),
    TimezoneEntry("Asia/Shanghai", "Shanghai", "China"),
    TimezoneEntry("Asia/Hong_Kong", "Hong Kong", "China"),
    TimezoneEntry("Asia/Singapore", "Singapore", "Singapore"),
    TimezoneEntry("Asia/Dubai", "Dubai", "UAE"),
    TimezoneEntry("Asia/Kolkata", "Mumbai", "India"),
    TimezoneEntry("Asia/Kolkata", "Delhi", "India"),
    TimezoneEntry("Asia/Bangkok", "Bangkok", "Thailand"),
    TimezoneEntry("Asia/Jakarta", "Jakarta", "Indonesia"),
    TimezoneEntry("Asia/Manila", "Manila", "Philippines"),
    TimezoneEntry("Asia/Kuala_Lumpur", "Kuala Lumpur", "Malaysia"),
    TimezoneEntry("Asia/Taipei", "Taipei", "Taiwan"),
    TimezoneEntry("Asia/Jerusalem", "Tel Aviv", "Israel"),
    # Oceania
    TimezoneEntry("Australia/Sydney", "Sydney", "Australia"),
    TimezoneEntry("Australia/Melbourne", "Melbourne", "Australia"),
    TimezoneEntry("Australia/Brisbane", "Brisbane", "Australia"),
    TimezoneEntry("Australia/Perth", "Perth", "Australia"),
    TimezoneEntry("Pacific/Auckland", "Auckland", "New Zealand"),
    # South America
    TimezoneEntry("America/Sao_Paulo", "São Paulo", "Brazil"),
    TimezoneEntry("America/Buenos_Aires", "Buenos Aires", "Argentina"),
    TimezoneEntry("America/Santiago", "Santiago", "Chile"),
    TimezoneEntry("America/Bogota", "Bogotá", "Colombia"),
    TimezoneEntry("America/Lima", "Lima", "Peru"),
    # Africa
    TimezoneEntry("Africa/Cairo", "Cairo", "Egypt"),
    TimezoneEntry("Africa/Johannesburg", "Johannesburg", "South Africa"),
    TimezoneEntry("Africa/Lagos", "Lagos", "Nigeria"),
    TimezoneEntry("Africa/Nairobi", "Nairobi", "Kenya"),
]


def timezone_label(timezone_id: str) -> str:
    """``City, Region`` for catalogued zones, otherwise the city part of the identifier."""
    for entry in TIMEZONES:
        if entry.value == timezone_id:
            return f"{entry.label}, {entry.region}"
    return timezone_id.split("/")[-1].replace("_", " ")


def search_timezones(query: str) -> list[TimezoneEntry]:
    """Case-insensitive match on city, region or identifier. Blank returns everything."""
    needle = query.strip().lower()
    if not needle:
        return list(TIMEZONES)
    return [
        entry for entry in TIMEZONES
        if needle in entry.label.lower()
        or needle in entry.region.lower()
        or needle in entry.value.lower()
    ]
