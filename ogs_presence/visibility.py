"""Access-controlled location labels.

Three display modes decide how much of a student's whereabouts a viewer
sees:

- ``roomName``: the parsed room or state, verbatim.
- ``groupName``: the student's home group name instead of the location.
- ``contextAware``: the room is shown only to viewers who share the
  student's group or supervise the room the student is in. Everyone else
  sees ``"Anwesend"`` for in-room presence. Home, transit and schoolyard
  carry no room detail and are always shown.

Sickness is an overlay applied after the mode: a sick student at home is
labelled ``"Krank"``, a sick student anywhere else keeps the spatial label
and gets a separate sick indicator.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .const import (
	DISPLAY_MODE_CONTEXT_AWARE,
	DISPLAY_MODE_GROUP_NAME,
	DISPLAY_MODE_ROOM_NAME,
	LOCATION_HOME,
	LOCATION_PRESENT,
	LOCATION_SCHOOLYARD,
	LOCATION_TRANSIT,
	SICK_LABEL,
)
from .location import parse_location
from .models import LocationStatus, ParsedLocation, StudentLocationContext

DISPLAY_MODES = (DISPLAY_MODE_ROOM_NAME, DISPLAY_MODE_GROUP_NAME, DISPLAY_MODE_CONTEXT_AWARE)

_STATE_LABELS = {
	LocationStatus.HOME: LOCATION_HOME,
	LocationStatus.TRANSIT: LOCATION_TRANSIT,
	LocationStatus.SCHOOLYARD: LOCATION_SCHOOLYARD,
	LocationStatus.PRESENT_IN_ROOM: LOCATION_PRESENT,
}


@dataclass(frozen=True)
class LocationLabel:
	"""Resolved label for one student as seen by one viewer."""
	text: str
	status: LocationStatus
	room_revealed: bool = False
	is_sick_indicator: bool = False
	sick_indicator: Optional[str] = None

	@property
	def sick(self) -> bool:
		return self.is_sick_indicator or self.sick_indicator is not None

	def tokens(self) -> List[str]:
		"""Visible pieces of the label, in display order."""
		if self.sick_indicator:
			return [self.text, self.sick_indicator]
		return [self.text]

	def __str__(self) -> str:
		return self.text


def _normalise(value: Optional[str]) -> str:
	return (value or "").strip().lower()


def _state_label(parsed: ParsedLocation) -> str:
	if parsed.is_present and parsed.room_name:
		return parsed.room_name
	return _STATE_LABELS[parsed.status]


def can_view_room_details(
	student: StudentLocationContext,
	viewer_group_ids: Optional[Iterable[str]] = None,
	supervised_room_names: Optional[Iterable[str]] = None,
) -> bool:
	"""Check whether a viewer may see the room a student is in.

	Args:
		student: Student snapshot
		viewer_group_ids: Groups the viewer belongs to
		supervised_room_names: Rooms the viewer currently supervises

	Returns:
		True if the viewer shares the student's group or supervises the room
	"""
	if student.group_id and viewer_group_ids:
		group_id = str(student.group_id)
		if any(str(gid) == group_id for gid in viewer_group_ids):
			return True

	parsed = parse_location(student.current_location)
	if parsed.is_present and parsed.room_name and supervised_room_names:
		room = _normalise(parsed.room_name)
		return any(_normalise(name) == room for name in supervised_room_names)

	return False


def get_location_display(
	student: StudentLocationContext,
	display_mode: str = DISPLAY_MODE_CONTEXT_AWARE,
	viewer_group_ids: Optional[Iterable[str]] = None,
	supervised_room_names: Optional[Iterable[str]] = None,
) -> LocationLabel:
	"""Resolve the location label a viewer is allowed to see.

	Args:
		student: Student snapshot
		display_mode: One of roomName, groupName, contextAware
		viewer_group_ids: Groups the viewer belongs to (contextAware only)
		supervised_room_names: Rooms the viewer supervises (contextAware only)

	Returns:
		LocationLabel with the sick overlay applied
	"""
	if display_mode not in DISPLAY_MODES:
		raise ValueError(f"Unknown display mode: {display_mode!r}")

	parsed = parse_location(student.current_location)
	room_revealed = False

	if display_mode == DISPLAY_MODE_GROUP_NAME:
		text = student.group_name or _state_label(parsed)
	elif display_mode == DISPLAY_MODE_ROOM_NAME:
		text = _state_label(parsed)
		room_revealed = parsed.room_name is not None
	elif parsed.is_present:
		if can_view_room_details(student, viewer_group_ids, supervised_room_names):
			text = _state_label(parsed)
			room_revealed = parsed.room_name is not None
		else:
			text = LOCATION_PRESENT
	else:
		text = _state_label(parsed)

	if not student.sick:
		return LocationLabel(text, parsed.status, room_revealed)

	if parsed.status is LocationStatus.HOME:
		return LocationLabel(SICK_LABEL, parsed.status, is_sick_indicator=True)

	return LocationLabel(text, parsed.status, room_revealed, sick_indicator=SICK_LABEL)
