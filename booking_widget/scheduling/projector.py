"""
Timezone projection of host-local availability into visitor-local buckets.

The host authors availability as wall-clock ``HH:MM`` values on host-local
dates. A visitor in another zone must see the same instants on their own
calendar, which can move a slot onto the previous or next day. Every slot
keeps its original host date and time so the booking request can send them
back untouched.

Usage:
    result = project({"2024-01-10": ["20:00"]}, "America/New_York", "Asia/Tokyo")
    result.slots["2024-01-11"][0].visitor_time_display  # '10:00 AM'
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_widget.config import settings
from booking_widget.errors import UnknownTimezoneError
from booking_widget.scheduling.formatting import format_clock
from booking_widget.utils import normalize_wall_clock, parse_iso_date, parse_wall_clock

logger = logging.getLogger(__name__)

HostSlotMap = dict[str, list[str]]


@dataclass(frozen=True)
class ProjectedSlot:
    """A host slot as seen by the visitor.

    ``host_date`` and ``host_time`` are authoritative and are submitted
    unchanged; ``visitor_instant`` is only used for ordering.
    """
    host_date: str
    host_time: str
    visitor_instant: datetime
    visitor_time_display: str


VisitorSlotMap = dict[str, list[ProjectedSlot]]


@dataclass(frozen=True)
class ProjectionWarning:
    """A slot that could not be projected and was left out."""
    host_date: str
    host_time: str
    reason: str


@dataclass
class ProjectionResult:
    """Visitor-local buckets plus any per-slot warnings."""
    slots: VisitorSlotMap = field(default_factory=dict)
    warnings: list[ProjectionWarning] = field(default_factory=list)

    @property
    def available_dates(self) -> list[str]:
        return sorted(self.slots)

    def slots_for(self, visitor_date: str) -> list[ProjectedSlot]:
        return list(self.slots.get(visitor_date, []))

    def slot_count(self) -> int:
        return sum(len(bucket) for bucket in self.slots.values())

    def find(self, host_date: str, host_time: str) -> Optional[ProjectedSlot]:
        """Locate the projection of a given host slot, if it survived."""
        for bucket in self.slots.values():
            for slot in bucket:
                if slot.host_date == host_date and slot.host_time == host_time:
                    return slot
        return None


def resolve_timezone(timezone_id: str) -> ZoneInfo:
    """Resolve an IANA identifier, raising UnknownTimezoneError if it is not known."""
    try:
        return ZoneInfo(timezone_id)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError) as exc:
        raise UnknownTimezoneError(f"Unknown timezone: {timezone_id!r}") from exc


def _in_gap(local: datetime, zone: ZoneInfo) -> bool:
    roundtrip = local.astimezone(timezone.utc).astimezone(zone)
    return roundtrip.replace(tzinfo=None) != local.replace(tzinfo=None)


def _gap_end(local: datetime, zone: ZoneInfo) -> datetime:
    """UTC instant at which the spring-forward gap containing ``local`` ends."""
    # fold=1 lands before the transition, fold=0 after it
    lo = int(local.replace(fold=1).astimezone(timezone.utc).timestamp())
    hi = int(local.replace(fold=0).astimezone(timezone.utc).timestamp())
    after = datetime.fromtimestamp(hi, timezone.utc).astimezone(zone).utcoffset()
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if datetime.fromtimestamp(mid, timezone.utc).astimezone(zone).utcoffset() == after:
            hi = mid
        else:
            lo = mid
    return datetime.fromtimestamp(hi, timezone.utc)


def host_wall_clock_to_instant(host_date: date, host_time: time, host_zone: ZoneInfo) -> datetime:
    """
    Resolve a host wall-clock reading to an absolute UTC instant.

    A reading repeated by a fall-back transition resolves to its first
    occurrence (``fold=0``). A reading skipped by a spring-forward gap rounds
    forward to the first instant after the gap, so 02:30 on a 02:00 to 03:00
    gap becomes 03:00. That keeps instants in the same order as the host's
    wall-clock readings.
    """
    local = datetime.combine(host_date, host_time, tzinfo=host_zone)
    if not _in_gap(local, host_zone):
        return local.astimezone(timezone.utc)
    logger.info(
        "Host time %s %s falls in a DST gap in %s; rounding forward",
        host_date, host_time.strftime("%H:%M"), host_zone.key,
    )
    return _gap_end(local, host_zone)


def project(
    host_slot_map: HostSlotMap,
    host_timezone_id: str,
    visitor_timezone_id: str,
    time_format: Optional[str] = None,
) -> ProjectionResult:
    """
    Map a host-local HostSlotMap into a visitor-local VisitorSlotMap.

    Args:
        host_slot_map: Host-local ISO date -> list of ``HH:MM`` strings.
        host_timezone_id: IANA zone the slots were authored in.
        visitor_timezone_id: IANA zone to display them in.
        time_format: ``12h`` or ``24h`` label style; defaults to settings.

    Returns:
        ProjectionResult with one ProjectedSlot per valid host slot, bucketed
        by visitor-local date and sorted by instant. Slots that cannot be
        projected are left out and reported in ``warnings``.
    """
    time_format = time_format or settings.booking.time_format
    result = ProjectionResult()

    try:
        host_zone = resolve_timezone(host_timezone_id)
        # Same zone: reuse the host zone, every date key stays where it was.
        if visitor_timezone_id == host_timezone_id:
            visitor_zone = host_zone
        else:
            visitor_zone = resolve_timezone(visitor_timezone_id)
    except UnknownTimezoneError as exc:
        for host_date, times in host_slot_map.items():
            for host_time in times:
                result.warnings.append(ProjectionWarning(host_date, host_time, exc.message))
        logger.warning(
            "Projection skipped %d slots: %s", len(result.warnings), exc.message,
        )
        return result

    seen: dict[datetime, ProjectedSlot] = {}
    for host_date, host_time, instant in _resolve_instants(host_slot_map, host_zone, result):
        # Gap readings that round onto another slot's instant would book a
        # different host time under the same label.
        if instant in seen:
            kept = seen[instant]
            reason = f"Same instant as {kept.host_date} {kept.host_time}"
            result.warnings.append(ProjectionWarning(host_date, host_time, reason))
            logger.warning("Dropping duplicate slot %s %s: %s", host_date, host_time, reason)
            continue

        visitor_local = instant.astimezone(visitor_zone)
        slot = ProjectedSlot(
            host_date=host_date,
            host_time=host_time,
            visitor_instant=instant,
            visitor_time_display=format_clock(visitor_local, time_format),
        )
        seen[instant] = slot
        result.slots.setdefault(visitor_local.date().isoformat(), []).append(slot)

    for bucket in result.slots.values():
        bucket.sort(key=lambda slot: (slot.visitor_instant, slot.host_date, slot.host_time))

    logger.debug(
        "Projected %d slots from %s into %d %s dates (%d warnings)",
        result.slot_count(), host_timezone_id, len(result.slots),
        visitor_timezone_id, len(result.warnings),
    )
    return result


def _resolve_instants(
    host_slot_map: HostSlotMap, host_zone: ZoneInfo, result: ProjectionResult
) -> list[tuple[str, str, datetime]]:
    """Canonical host date, time and UTC instant per valid slot.

    Ordered so that, for slots sharing an instant, an exact wall-clock reading
    comes before one rounded out of a DST gap.
    """
    resolved: list[tuple[bool, str, str, datetime]] = []
    for host_date, times in host_slot_map.items():
        for host_time in times:
            try:
                day = parse_iso_date(host_date)
                clock = normalize_wall_clock(host_time)
                local = datetime.combine(day, parse_wall_clock(clock), tzinfo=host_zone)
                instant = host_wall_clock_to_instant(day, local.time(), host_zone)
            except ValueError as exc:
                result.warnings.append(ProjectionWarning(host_date, host_time, str(exc)))
                logger.warning("Dropping unprojectable slot %s %r: %s", host_date, host_time, exc)
                continue
            resolved.append((_in_gap(local, host_zone), day.isoformat(), clock, instant))

    resolved.sort(key=lambda item: (item[3], item[0], item[1], item[2]))
    return [(host_date, host_time, instant) for _, host_date, host_time, instant in resolved]
