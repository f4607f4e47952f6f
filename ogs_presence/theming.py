"""Colour contract for presence badges."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .const import (
	COLOR_GROUP_ROOM,
	COLOR_HOME,
	COLOR_OTHER_ROOM,
	COLOR_SCHOOLYARD,
	COLOR_SICK,
	COLOR_TRANSIT,
	DISPLAY_MODE_GROUP_NAME,
)
from .location import is_group_room, parse_location
from .models import LocationStatus

SICK_COLOR = COLOR_SICK


class ColorToken(Enum):
	"""Fixed presence colours."""
	GROUP_ROOM = COLOR_GROUP_ROOM
	OTHER_ROOM = COLOR_OTHER_ROOM
	TRANSIT = COLOR_TRANSIT
	SCHOOLYARD = COLOR_SCHOOLYARD
	HOME = COLOR_HOME

	@property
	def hex(self) -> str:
		return self.value


@dataclass(frozen=True)
class GlowEffect:
	"""Visual emphasis for a badge."""
	box_shadow: str
	ring_color: str
	pulse: bool = False


_FIXED_TOKENS = {
	LocationStatus.HOME: ColorToken.HOME,
	LocationStatus.TRANSIT: ColorToken.TRANSIT,
	LocationStatus.SCHOOLYARD: ColorToken.SCHOOLYARD,
}

# Students on the move get a pulsing badge
_PULSING = frozenset({ColorToken.TRANSIT})


def get_location_color(
	raw: Optional[str],
	known_group_room: bool = False,
	group_room_names: Optional[Iterable[str]] = None,
	display_mode: Optional[str] = None,
) -> ColorToken:
	"""Map a raw location to its colour token.

	groupName display shows a group, not a location, so it is always green.
	"""
	if display_mode == DISPLAY_MODE_GROUP_NAME:
		return ColorToken.GROUP_ROOM

	parsed = parse_location(raw)
	fixed = _FIXED_TOKENS.get(parsed.status)
	if fixed is not None:
		return fixed

	if is_group_room(raw, group_room_names, known_group_room=known_group_room):
		return ColorToken.GROUP_ROOM
	return ColorToken.OTHER_ROOM


def _hex_to_rgb(color: str) -> str:
	value = color.lstrip("#")
	r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
	return f"{r}, {g}, {b}"


def get_location_glow_effect(color: ColorToken) -> GlowEffect:
	"""Return the emphasis descriptor for a colour token."""
	rgb = _hex_to_rgb(color.hex)
	return GlowEffect(
		box_shadow=f"0 8px 25px rgba({rgb}, 0.4)",
		ring_color=f"rgba({rgb}, 0.6)",
		pulse=color in _PULSING,
	)
