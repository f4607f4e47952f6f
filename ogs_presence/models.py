"""Data models for OGS presence entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List


class LocationStatus(Enum):
	"""Spatial state of a student. Sickness is tracked separately."""
	HOME = "home"
	TRANSIT = "transit"
	SCHOOLYARD = "schoolyard"
	PRESENT_IN_ROOM = "present_in_room"


@dataclass(frozen=True)
class ParsedLocation:
	"""Structured form of a raw location string."""
	status: LocationStatus
	room_name: Optional[str] = None

	@property
	def is_present(self) -> bool:
		return self.status is LocationStatus.PRESENT_IN_ROOM


@dataclass
class StudentLocationContext:
	"""Per-student snapshot used for presence display."""
	student_id: str
	current_location: str = ""
	name: Optional[str] = None
	location_since: Optional[datetime] = None
	group_id: Optional[str] = None
	group_name: Optional[str] = None
	sick: bool = False
	sick_since: Optional[datetime] = None

	def __str__(self) -> str:
		return f"{self.name or self.student_id} ({self.current_location or 'unknown'})"


@dataclass
class RoomInfo:
	"""Room reference embedded in an active group."""
	id: str
	name: Optional[str] = None
	category: Optional[str] = None


@dataclass
class GroupInfo:
	"""Educational group reference embedded in an active group."""
	id: str
	name: Optional[str] = None


@dataclass
class ActiveGroup:
	"""A group occupying a room for a time span."""
	id: str
	group_id: str
	room_id: str
	start_time: Optional[datetime] = None
	end_time: Optional[datetime] = None
	is_active: bool = True
	notes: Optional[str] = None
	visit_count: Optional[int] = None
	supervisor_count: Optional[int] = None
	room: Optional[RoomInfo] = None
	actual_group: Optional[GroupInfo] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@property
	def is_unclaimed(self) -> bool:
		"""Check whether nobody supervises this group right now."""
		return self.supervisor_count == 0

	def __str__(self) -> str:
		room = self.room.name if self.room and self.room.name else self.room_id
		state = "active" if self.is_active else "ended"
		return f"Active group {self.id} in {room} ({state})"


@dataclass
class Visit:
	"""A student's check-in/check-out span within an active group."""
	id: str
	student_id: str
	active_group_id: str
	check_in_time: Optional[datetime] = None
	check_out_time: Optional[datetime] = None
	is_active: bool = True
	notes: Optional[str] = None
	student_name: Optional[str] = None
	school_class: Optional[str] = None
	group_name: Optional[str] = None
	active_group_name: Optional[str] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None


@dataclass
class Supervisor:
	"""Staff member assigned to an active group."""
	id: str
	staff_id: str
	active_group_id: str
	start_time: Optional[datetime] = None
	end_time: Optional[datetime] = None
	is_active: bool = True
	notes: Optional[str] = None
	staff_name: Optional[str] = None
	active_group_name: Optional[str] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None


@dataclass
class CombinedGroup:
	"""Several active groups sharing one physical space."""
	id: str
	name: str
	room_id: str
	description: Optional[str] = None
	start_time: Optional[datetime] = None
	end_time: Optional[datetime] = None
	is_active: bool = True
	notes: Optional[str] = None
	group_count: Optional[int] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None


@dataclass
class GroupMapping:
	"""Membership of an active group in a combined group."""
	id: str
	active_group_id: str
	combined_group_id: str
	group_name: Optional[str] = None
	combined_name: Optional[str] = None


@dataclass
class Analytics:
	"""Reporting projection over active entities."""
	active_groups_count: Optional[int] = None
	total_visits_count: Optional[int] = None
	active_visits_count: Optional[int] = None
	room_utilization: Optional[float] = None
	attendance_rate: Optional[float] = None


@dataclass
class SchulhofSupervisor:
	"""Staff member currently supervising the schoolyard."""
	id: str
	staff_id: str
	name: Optional[str] = None
	is_current_user: bool = False


@dataclass
class SchulhofStatus:
	"""State of the permanent schoolyard supervision area."""
	exists: bool = False
	room_id: Optional[str] = None
	room_name: Optional[str] = None
	activity_group_id: Optional[str] = None
	active_group_id: Optional[str] = None
	is_user_supervising: bool = False
	supervision_id: Optional[str] = None
	supervisor_count: int = 0
	student_count: int = 0
	supervisors: List[SchulhofSupervisor] = field(default_factory=list)


@dataclass
class ToggleSupervisionResult:
	"""Outcome of starting or stopping schoolyard supervision."""
	action: str
	supervision_id: Optional[str] = None
	active_group_id: Optional[str] = None


@dataclass
class Pagination:
	"""Pagination block of a list envelope."""
	current_page: int = 1
	page_size: int = 0
	total_pages: int = 1
	total_records: int = 0


@dataclass
class Page:
	"""One page of mapped items plus its pagination block, if any."""
	items: list
	pagination: Optional[Pagination] = None
