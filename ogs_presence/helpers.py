"""Translation between backend wire format and in-process models.

The backend speaks snake_case with numeric IDs and ISO-8601 timestamps; the
models use string IDs and datetimes. ``map_*`` functions read backend
payloads, ``prepare_*`` functions build request bodies and only include the
fields that were given.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .location import normalize_location
from .models import (
	ActiveGroup, Analytics, CombinedGroup, GroupInfo, GroupMapping, RoomInfo,
	SchulhofStatus, SchulhofSupervisor, StudentLocationContext, Supervisor,
	ToggleSupervisionResult, Visit,
)

_LOGGER = logging.getLogger(__name__)

BackendId = Union[int, str]

_FRACTION_RE = re.compile(r"\.(\d+)(?=[+-]\d{2}:?\d{2}$|$)")


def _fix_fraction(match: "re.Match") -> str:
	# fromisoformat on 3.10 wants exactly 3 or 6 digits; RFC3339Nano drops trailing zeros
	return "." + match.group(1)[:6].ljust(6, "0")


def parse_datetime(value: Any) -> Optional[datetime]:
	"""Parse an ISO-8601 timestamp from the backend, None if absent or invalid.

	Timestamps without an offset are taken as UTC.
	"""
	if value is None or value == "":
		return None
	if isinstance(value, datetime):
		parsed = value
	else:
		text = str(value).strip()
		if text.endswith(("Z", "z")):
			text = text[:-1] + "+00:00"
		text = _FRACTION_RE.sub(_fix_fraction, text, count=1)
		try:
			parsed = datetime.fromisoformat(text)
		except ValueError:
			_LOGGER.debug(f"Could not parse timestamp {value!r}")
			return None
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed


def format_datetime(value: datetime) -> str:
	"""Format a datetime the way the backend expects (UTC, millisecond precision)."""
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	value = value.astimezone(timezone.utc)
	return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def to_backend_id(value: Any) -> BackendId:
	"""Convert an in-process string ID to the backend's numeric form.

	Non-numeric values are passed through untouched; the backend rejects them.
	"""
	try:
		return int(value)
	except (TypeError, ValueError):
		return value


def _id(value: Any) -> Optional[str]:
	return None if value is None else str(value)


def _is_active(data: Dict[str, Any], end_key: str) -> bool:
	if data.get("is_active") is not None:
		return bool(data["is_active"])
	return data.get(end_key) is None


# Student locations

def map_student_location_response(data: Dict[str, Any]) -> StudentLocationContext:
	"""Build a StudentLocationContext from a backend student payload."""
	name = data.get("name")
	if not name:
		parts = [data.get("first_name"), data.get("second_name")]
		name = " ".join(p for p in parts if p) or None

	return StudentLocationContext(
		student_id=str(data.get("id", "")),
		name=name,
		current_location=normalize_location(data.get("current_location")),
		location_since=parse_datetime(data.get("location_since")),
		group_id=_id(data.get("group_id")),
		group_name=data.get("group_name"),
		sick=bool(data.get("sick") or False),
		sick_since=parse_datetime(data.get("sick_since")),
	)


# Active groups

def map_active_group_response(data: Dict[str, Any]) -> ActiveGroup:
	room = data.get("room")
	actual_group = data.get("actual_group")
	return ActiveGroup(
		id=str(data["id"]),
		group_id=str(data.get("group_id", "")),
		room_id=str(data.get("room_id", "")),
		start_time=parse_datetime(data.get("start_time")),
		end_time=parse_datetime(data.get("end_time")),
		is_active=_is_active(data, "end_time"),
		notes=data.get("notes"),
		visit_count=data.get("visit_count"),
		supervisor_count=data.get("supervisor_count"),
		room=RoomInfo(str(room["id"]), room.get("name"), room.get("category")) if isinstance(room, dict) else None,
		actual_group=GroupInfo(str(actual_group["id"]), actual_group.get("name")) if isinstance(actual_group, dict) else None,
		created_at=parse_datetime(data.get("created_at")),
		updated_at=parse_datetime(data.get("updated_at")),
	)


def prepare_active_group_for_backend(
	group_id: Optional[str] = None,
	room_id: Optional[str] = None,
	start_time: Optional[datetime] = None,
	end_time: Optional[datetime] = None,
	notes: Optional[str] = None,
) -> Dict[str, Any]:
	body: Dict[str, Any] = {}
	if group_id is not None:
		body["group_id"] = to_backend_id(group_id)
	if room_id is not None:
		body["room_id"] = to_backend_id(room_id)
	if start_time is not None:
		body["start_time"] = format_datetime(start_time)
	if end_time is not None:
		body["end_time"] = format_datetime(end_time)
	if notes is not None:
		body["notes"] = notes
	return body


# Visits

def map_visit_response(data: Dict[str, Any]) -> Visit:
	return Visit(
		id=str(data["id"]),
		student_id=str(data.get("student_id", "")),
		active_group_id=str(data.get("active_group_id", "")),
		check_in_time=parse_datetime(data.get("check_in_time")),
		check_out_time=parse_datetime(data.get("check_out_time")),
		is_active=_is_active(data, "check_out_time"),
		notes=data.get("notes"),
		student_name=data.get("student_name"),
		school_class=data.get("school_class"),
		group_name=data.get("group_name"),
		active_group_name=data.get("active_group_name"),
		created_at=parse_datetime(data.get("created_at")),
		updated_at=parse_datetime(data.get("updated_at")),
	)


def prepare_visit_for_backend(
	student_id: Optional[str] = None,
	active_group_id: Optional[str] = None,
	check_in_time: Optional[datetime] = None,
	check_out_time: Optional[datetime] = None,
	notes: Optional[str] = None,
) -> Dict[str, Any]:
	body: Dict[str, Any] = {}
	if student_id is not None:
		body["student_id"] = to_backend_id(student_id)
	if active_group_id is not None:
		body["active_group_id"] = to_backend_id(active_group_id)
	if check_in_time is not None:
		body["check_in_time"] = format_datetime(check_in_time)
	if check_out_time is not None:
		body["check_out_time"] = format_datetime(check_out_time)
	if notes is not None:
		body["notes"] = notes
	return body


# Supervisors

def map_supervisor_response(data: Dict[str, Any]) -> Supervisor:
	return Supervisor(
		id=str(data["id"]),
		staff_id=str(data.get("staff_id", "")),
		active_group_id=str(data.get("active_group_id", "")),
		start_time=parse_datetime(data.get("start_time")),
		end_time=parse_datetime(data.get("end_time")),
		is_active=_is_active(data, "end_time"),
		notes=data.get("notes"),
		staff_name=data.get("staff_name"),
		active_group_name=data.get("active_group_name"),
		created_at=parse_datetime(data.get("created_at")),
		updated_at=parse_datetime(data.get("updated_at")),
	)


def prepare_supervisor_for_backend(
	staff_id: Optional[str] = None,
	active_group_id: Optional[str] = None,
	start_time: Optional[datetime] = None,
	end_time: Optional[datetime] = None,
	notes: Optional[str] = None,
) -> Dict[str, Any]:
	body: Dict[str, Any] = {}
	if staff_id is not None:
		body["staff_id"] = to_backend_id(staff_id)
	if active_group_id is not None:
		body["active_group_id"] = to_backend_id(active_group_id)
	if start_time is not None:
		body["start_time"] = format_datetime(start_time)
	if end_time is not None:
		body["end_time"] = format_datetime(end_time)
	if notes is not None:
		body["notes"] = notes
	return body


# Combined groups and mappings

def map_combined_group_response(data: Dict[str, Any]) -> CombinedGroup:
	return CombinedGroup(
		id=str(data["id"]),
		name=data.get("name", ""),
		room_id=str(data.get("room_id", "")),
		description=data.get("description"),
		start_time=parse_datetime(data.get("start_time")),
		end_time=parse_datetime(data.get("end_time")),
		is_active=_is_active(data, "end_time"),
		notes=data.get("notes"),
		group_count=data.get("group_count"),
		created_at=parse_datetime(data.get("created_at")),
		updated_at=parse_datetime(data.get("updated_at")),
	)


def prepare_combined_group_for_backend(
	name: Optional[str] = None,
	room_id: Optional[str] = None,
	description: Optional[str] = None,
	start_time: Optional[datetime] = None,
	end_time: Optional[datetime] = None,
	notes: Optional[str] = None,
) -> Dict[str, Any]:
	body: Dict[str, Any] = {}
	if name is not None:
		body["name"] = name
	if description is not None:
		body["description"] = description
	if room_id is not None:
		body["room_id"] = to_backend_id(room_id)
	if start_time is not None:
		body["start_time"] = format_datetime(start_time)
	if end_time is not None:
		body["end_time"] = format_datetime(end_time)
	if notes is not None:
		body["notes"] = notes
	return body


def map_group_mapping_response(data: Dict[str, Any]) -> GroupMapping:
	return GroupMapping(
		id=str(data["id"]),
		active_group_id=str(data.get("active_group_id", "")),
		combined_group_id=str(data.get("combined_group_id", "")),
		group_name=data.get("group_name"),
		combined_name=data.get("combined_name"),
	)


def prepare_group_mapping_for_backend(active_group_id: str, combined_group_id: str) -> Dict[str, Any]:
	return {
		"active_group_id": to_backend_id(active_group_id),
		"combined_group_id": to_backend_id(combined_group_id),
	}


# Analytics

def map_analytics_response(data: Optional[Dict[str, Any]]) -> Analytics:
	data = data or {}
	return Analytics(
		active_groups_count=data.get("active_groups_count"),
		total_visits_count=data.get("total_visits_count"),
		active_visits_count=data.get("active_visits_count"),
		room_utilization=data.get("room_utilization"),
		attendance_rate=data.get("attendance_rate"),
	)


# Schulhof

def map_schulhof_status_response(data: Dict[str, Any]) -> SchulhofStatus:
	supervisors = [
		SchulhofSupervisor(
			id=str(item.get("id", "")),
			staff_id=str(item.get("staff_id", "")),
			name=item.get("name"),
			is_current_user=bool(item.get("is_current_user", False)),
		)
		for item in data.get("supervisors") or []
		if isinstance(item, dict)
	]
	return SchulhofStatus(
		exists=bool(data.get("exists", False)),
		room_id=_id(data.get("room_id")),
		room_name=data.get("room_name"),
		activity_group_id=_id(data.get("activity_group_id")),
		active_group_id=_id(data.get("active_group_id")),
		is_user_supervising=bool(data.get("is_user_supervising", False)),
		supervision_id=_id(data.get("supervision_id")),
		supervisor_count=int(data.get("supervisor_count") or 0),
		student_count=int(data.get("student_count") or 0),
		supervisors=supervisors,
	)


def map_toggle_supervision_response(data: Dict[str, Any]) -> ToggleSupervisionResult:
	return ToggleSupervisionResult(
		action=data.get("action", ""),
		supervision_id=_id(data.get("supervision_id")),
		active_group_id=_id(data.get("active_group_id")),
	)
