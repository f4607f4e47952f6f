"""Parsing of raw student location strings.

The backend reports a student's whereabouts as free text. In-room presence
uses ``"Anwesend - <room>"``; the other states are the bare tokens
``"Zuhause"``, ``"Schulhof"`` and ``"Unterwegs"``. Parsing never raises: any
unrecognised value degrades to ``HOME``, the most restrictive display.
"""

import logging
from typing import Iterable, Optional

from .const import (
	LOCATION_HOME,
	LOCATION_LEGACY_ABSENT,
	LOCATION_PRESENT,
	LOCATION_PRESENT_PREFIX,
	LOCATION_SCHOOLYARD,
	LOCATION_TRANSIT,
)
from .models import LocationStatus, ParsedLocation, StudentLocationContext

_LOGGER = logging.getLogger(__name__)

_BARE_TOKENS = {
	LOCATION_HOME: LocationStatus.HOME,
	LOCATION_SCHOOLYARD: LocationStatus.SCHOOLYARD,
	LOCATION_TRANSIT: LocationStatus.TRANSIT,
}


def normalize_location(raw: Optional[str]) -> str:
	"""Return the location string with legacy values replaced."""
	if not raw:
		return ""
	value = raw.strip()
	if value == LOCATION_LEGACY_ABSENT:
		return LOCATION_HOME
	return value


def parse_location(raw: Optional[str]) -> ParsedLocation:
	"""Turn a raw location string into a ParsedLocation.

	Args:
		raw: Location as reported by the backend; may be empty or None

	Returns:
		ParsedLocation with exactly one status set
	"""
	if not isinstance(raw, str):
		return ParsedLocation(LocationStatus.HOME)

	value = normalize_location(raw)

	if value.startswith(LOCATION_PRESENT_PREFIX):
		room = value[len(LOCATION_PRESENT_PREFIX):].strip()
		return ParsedLocation(LocationStatus.PRESENT_IN_ROOM, room or None)

	if value == LOCATION_PRESENT:
		# Present, but the backend withheld the room
		return ParsedLocation(LocationStatus.PRESENT_IN_ROOM, None)

	status = _BARE_TOKENS.get(value)
	if status is None:
		if value:
			_LOGGER.debug(f"Unrecognised location {value!r}, treating as home")
		return ParsedLocation(LocationStatus.HOME)

	return ParsedLocation(status)


def is_home_location(raw: Optional[str]) -> bool:
	return parse_location(raw).status is LocationStatus.HOME


def is_transit_location(raw: Optional[str]) -> bool:
	return parse_location(raw).status is LocationStatus.TRANSIT


def is_schoolyard_location(raw: Optional[str]) -> bool:
	return parse_location(raw).status is LocationStatus.SCHOOLYARD


def is_present_location(raw: Optional[str]) -> bool:
	return parse_location(raw).status is LocationStatus.PRESENT_IN_ROOM


def _normalise_room(name: Optional[str]) -> str:
	return (name or "").strip().lower()


def is_group_room(
	raw: Optional[str],
	group_room_names: Optional[Iterable[str]] = None,
	known_group_room: bool = False,
) -> bool:
	"""Decide whether the room a student occupies is one of the viewer's group rooms.

	Args:
		raw: Raw location string
		group_room_names: Names of the rooms the viewer's groups occupy
		known_group_room: Caller already knows the room is a group room

	Returns:
		True only for in-room presence in a group room
	"""
	parsed = parse_location(raw)
	if not parsed.is_present:
		return False
	if known_group_room:
		return True
	if not parsed.room_name or not group_room_names:
		return False

	room = _normalise_room(parsed.room_name)
	return any(room == _normalise_room(name) for name in group_room_names if name)


def is_student_in_group_room(
	student: StudentLocationContext,
	room_name: Optional[str] = None,
	room_id: Optional[str] = None,
) -> bool:
	"""Check whether a student currently sits in the given group room.

	Compares room names first; when only the room id is known, falls back to
	looking for the id inside the raw location.
	"""
	if not student.current_location or not room_name:
		return False

	parsed = parse_location(student.current_location)
	if parsed.room_name and _normalise_room(parsed.room_name) == _normalise_room(room_name):
		return True

	if room_id:
		return str(room_id) in student.current_location.lower()

	return False
