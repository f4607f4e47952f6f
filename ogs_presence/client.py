"""Client for the OGS backend's active-session API."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .const import CLAIM_ROLE_SUPERVISOR, SCHULHOF_ACTION_START, SCHULHOF_ACTION_STOP
from .envelope import detect_envelope, extract_item, extract_list
from .exceptions import OGSAPIError, OGSAuthError, OGSClaimError, OGSDataError
from .helpers import (
	map_active_group_response,
	map_analytics_response,
	map_combined_group_response,
	map_group_mapping_response,
	map_schulhof_status_response,
	map_supervisor_response,
	map_toggle_supervision_response,
	map_visit_response,
	prepare_active_group_for_backend,
	prepare_combined_group_for_backend,
	prepare_group_mapping_for_backend,
	prepare_supervisor_for_backend,
	prepare_visit_for_backend,
)
from .models import (
	ActiveGroup, Analytics, CombinedGroup, GroupMapping, Page, SchulhofStatus,
	Supervisor, ToggleSupervisionResult, Visit,
)
from .transport import TransportContext
from .unclaimed import parse_unclaimed_groups_payload

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
Mapper = Callable[[Dict[str, Any]], T]


def _active_suffix(active: Optional[bool]) -> str:
	if active is None:
		return ""
	return f"?active={'true' if active else 'false'}"


class ActiveServiceClient:
	"""Client for active groups, visits, supervisors and combined groups.

	The backend is the system of record: nothing is cached here and every
	method is a single round trip.
	"""

	def __init__(self, transport: TransportContext):
		"""Initialise client.

		Args:
			transport: Explicit transport context (backend or proxy route)
		"""
		self.transport = transport

	async def __aenter__(self):
		await self.transport.__aenter__()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		await self.transport.__aexit__(exc_type, exc_val, exc_tb)

	# Request plumbing

	def _map_one(self, data: Any, mapper: Mapper, operation: str) -> T:
		if not isinstance(data, dict):
			raise OGSDataError(f"{operation}: expected an object, got {type(data).__name__}")
		try:
			return mapper(data)
		except (KeyError, TypeError, ValueError) as e:
			raise OGSDataError(f"{operation}: malformed entity: {e}") from e

	def _map_many(self, items: List[Any], mapper: Mapper, operation: str) -> List[T]:
		result = []
		for item in items:
			try:
				result.append(mapper(item))
			except (KeyError, TypeError, ValueError, AttributeError) as e:
				_LOGGER.warning(f"{operation}: skipping malformed item: {e}")
		return result

	async def _get(self, path: str, mapper: Mapper, operation: str) -> T:
		payload = await self.transport.request("GET", path, operation)
		return self._map_one(extract_item(payload), mapper, operation)

	async def _get_nullable(self, path: str, mapper: Mapper, operation: str) -> Optional[T]:
		payload = await self.transport.request("GET", path, operation, not_found_ok=True)
		data = extract_item(payload)
		if not data:
			return None
		return self._map_one(data, mapper, operation)

	async def _get_list(self, path: str, mapper: Mapper, operation: str, not_found_ok: bool = False) -> List[T]:
		payload = await self.transport.request("GET", path, operation, not_found_ok=not_found_ok)
		return self._map_many(extract_list(payload, operation), mapper, operation)

	async def _post(self, path: str, body: Any, mapper: Mapper, operation: str) -> T:
		payload = await self.transport.request("POST", path, operation, body=body)
		return self._map_one(extract_item(payload), mapper, operation)

	async def _put(self, path: str, body: Any, mapper: Mapper, operation: str) -> T:
		payload = await self.transport.request("PUT", path, operation, body=body)
		return self._map_one(extract_item(payload), mapper, operation)

	async def _post_void(self, path: str, body: Any, operation: str) -> None:
		await self.transport.request("POST", path, operation, body=body)

	async def _delete(self, path: str, operation: str) -> None:
		await self.transport.request("DELETE", path, operation)

	# Active groups

	async def get_active_groups(self, active: Optional[bool] = None) -> List[ActiveGroup]:
		page = await self.get_active_groups_page(active)
		return page.items

	async def get_active_groups_page(self, active: Optional[bool] = None) -> Page:
		"""Get active groups together with the pagination block, if any."""
		operation = "Get active groups"
		payload = await self.transport.request("GET", f"/active/groups{_active_suffix(active)}", operation)
		envelope = detect_envelope(payload)
		items = extract_list(payload, operation)
		return Page(self._map_many(items, map_active_group_response, operation), envelope.pagination)

	async def get_active_group(self, group_id: str) -> ActiveGroup:
		return await self._get(f"/active/groups/{group_id}", map_active_group_response, "Get active group")

	async def get_active_groups_by_room(self, room_id: str) -> List[ActiveGroup]:
		return await self._get_list(f"/active/groups/room/{room_id}", map_active_group_response, "Get active groups by room")

	async def get_active_groups_by_group(self, group_id: str) -> List[ActiveGroup]:
		return await self._get_list(f"/active/groups/group/{group_id}", map_active_group_response, "Get active groups by group")

	async def get_active_group_visits(self, group_id: str) -> List[Visit]:
		return await self._get_list(f"/active/groups/{group_id}/visits", map_visit_response, "Get active group visits")

	async def get_active_group_visits_with_display(self, group_id: str) -> List[Visit]:
		"""Bulk fetch of visits with student display data.

		A 404 means the group has no visit data yet and yields an empty list.
		"""
		return await self._get_list(
			f"/active/groups/{group_id}/visits/display",
			map_visit_response,
			"Get visits with display",
			not_found_ok=True,
		)

	async def get_active_group_supervisors(self, group_id: str) -> List[Supervisor]:
		return await self._get_list(f"/active/groups/{group_id}/supervisors", map_supervisor_response, "Get active group supervisors")

	async def create_active_group(
		self,
		group_id: str,
		room_id: str,
		start_time: Optional[datetime] = None,
		notes: Optional[str] = None,
	) -> ActiveGroup:
		body = prepare_active_group_for_backend(group_id=group_id, room_id=room_id, start_time=start_time, notes=notes)
		return await self._post("/active/groups", body, map_active_group_response, "Create active group")

	async def update_active_group(self, active_group_id: str, **fields) -> ActiveGroup:
		body = prepare_active_group_for_backend(**fields)
		return await self._put(f"/active/groups/{active_group_id}", body, map_active_group_response, "Update active group")

	async def delete_active_group(self, active_group_id: str) -> None:
		await self._delete(f"/active/groups/{active_group_id}", "Delete active group")

	async def end_active_group(self, active_group_id: str) -> ActiveGroup:
		"""End an occupancy session.

		Ending an already ended group is rejected by the backend and raised as
		OGSAPIError; it is not suppressed here.
		"""
		return await self._post(f"/active/groups/{active_group_id}/end", None, map_active_group_response, "End active group")

	async def get_unclaimed_groups(self) -> List[ActiveGroup]:
		"""Get active groups that currently have no supervisor."""
		operation = "Get unclaimed groups"
		payload = await self.transport.request("GET", "/active/groups/unclaimed", operation)
		raw_groups = parse_unclaimed_groups_payload(payload)
		return self._map_many(raw_groups, map_active_group_response, operation)

	async def claim_active_group(self, active_group_id: str) -> None:
		"""Take the supervisor role on an unclaimed group without a device.

		Raises:
			OGSClaimError: The backend refused the claim; safe to retry
		"""
		operation = "Claim group"
		try:
			await self._post_void(f"/active/groups/{active_group_id}/claim", {"role": CLAIM_ROLE_SUPERVISOR}, operation)
		except OGSAuthError:
			raise
		except OGSAPIError as e:
			_LOGGER.warning(f"Claim of group {active_group_id} was rejected: {e}")
			raise OGSClaimError(str(e), status=e.status, operation=operation) from e

	# Visits

	async def get_visits(self, active: Optional[bool] = None) -> List[Visit]:
		return await self._get_list(f"/active/visits{_active_suffix(active)}", map_visit_response, "Get visits")

	async def get_visit(self, visit_id: str) -> Visit:
		return await self._get(f"/active/visits/{visit_id}", map_visit_response, "Get visit")

	async def get_student_visits(self, student_id: str) -> List[Visit]:
		return await self._get_list(f"/active/visits/student/{student_id}", map_visit_response, "Get student visits")

	async def get_student_current_visit(self, student_id: str) -> Optional[Visit]:
		"""Get the student's active visit, None if the student is not checked in."""
		return await self._get_nullable(
			f"/active/visits/student/{student_id}/current",
			map_visit_response,
			"Get student current visit",
		)

	async def get_visits_by_group(self, group_id: str) -> List[Visit]:
		return await self._get_list(f"/active/visits/group/{group_id}", map_visit_response, "Get visits by group")

	async def create_visit(
		self,
		student_id: str,
		active_group_id: str,
		check_in_time: Optional[datetime] = None,
		notes: Optional[str] = None,
	) -> Visit:
		body = prepare_visit_for_backend(
			student_id=student_id, active_group_id=active_group_id, check_in_time=check_in_time, notes=notes,
		)
		return await self._post("/active/visits", body, map_visit_response, "Create visit")

	async def update_visit(self, visit_id: str, **fields) -> Visit:
		body = prepare_visit_for_backend(**fields)
		return await self._put(f"/active/visits/{visit_id}", body, map_visit_response, "Update visit")

	async def delete_visit(self, visit_id: str) -> None:
		await self._delete(f"/active/visits/{visit_id}", "Delete visit")

	async def end_visit(self, visit_id: str) -> Visit:
		return await self._post(f"/active/visits/{visit_id}/end", None, map_visit_response, "End visit")

	async def checkout_student(self, student_id: str) -> None:
		"""Daily checkout: ends the current visit and marks the student as gone home."""
		await self._post_void(f"/active/visits/student/{student_id}/checkout", {}, "Checkout student")

	# Supervisors

	async def get_supervisors(self, active: Optional[bool] = None) -> List[Supervisor]:
		return await self._get_list(f"/active/supervisors{_active_suffix(active)}", map_supervisor_response, "Get supervisors")

	async def get_supervisor(self, supervisor_id: str) -> Supervisor:
		return await self._get(f"/active/supervisors/{supervisor_id}", map_supervisor_response, "Get supervisor")

	async def get_staff_supervisions(self, staff_id: str) -> List[Supervisor]:
		return await self._get_list(f"/active/supervisors/staff/{staff_id}", map_supervisor_response, "Get staff supervisions")

	async def get_staff_active_supervisions(self, staff_id: str) -> List[Supervisor]:
		return await self._get_list(
			f"/active/supervisors/staff/{staff_id}/active",
			map_supervisor_response,
			"Get staff active supervisions",
		)

	async def get_supervisors_by_group(self, group_id: str) -> List[Supervisor]:
		return await self._get_list(f"/active/supervisors/group/{group_id}", map_supervisor_response, "Get supervisors by group")

	async def create_supervisor(
		self,
		staff_id: str,
		active_group_id: str,
		start_time: Optional[datetime] = None,
		notes: Optional[str] = None,
	) -> Supervisor:
		body = prepare_supervisor_for_backend(
			staff_id=staff_id, active_group_id=active_group_id, start_time=start_time, notes=notes,
		)
		return await self._post("/active/supervisors", body, map_supervisor_response, "Create supervisor")

	async def update_supervisor(self, supervisor_id: str, **fields) -> Supervisor:
		body = prepare_supervisor_for_backend(**fields)
		return await self._put(f"/active/supervisors/{supervisor_id}", body, map_supervisor_response, "Update supervisor")

	async def delete_supervisor(self, supervisor_id: str) -> None:
		await self._delete(f"/active/supervisors/{supervisor_id}", "Delete supervisor")

	async def end_supervision(self, supervisor_id: str) -> Supervisor:
		return await self._post(f"/active/supervisors/{supervisor_id}/end", None, map_supervisor_response, "End supervision")

	# Combined groups

	async def get_combined_groups(self, active: Optional[bool] = None) -> List[CombinedGroup]:
		return await self._get_list(f"/active/combined{_active_suffix(active)}", map_combined_group_response, "Get combined groups")

	async def get_active_combined_groups(self) -> List[CombinedGroup]:
		return await self._get_list("/active/combined/active", map_combined_group_response, "Get active combined groups")

	async def get_combined_group(self, combined_group_id: str) -> CombinedGroup:
		return await self._get(f"/active/combined/{combined_group_id}", map_combined_group_response, "Get combined group")

	async def get_combined_group_groups(self, combined_group_id: str) -> List[ActiveGroup]:
		return await self._get_list(
			f"/active/combined/{combined_group_id}/groups",
			map_active_group_response,
			"Get combined group groups",
		)

	async def create_combined_group(
		self,
		name: str,
		room_id: str,
		description: Optional[str] = None,
		start_time: Optional[datetime] = None,
		notes: Optional[str] = None,
	) -> CombinedGroup:
		body = prepare_combined_group_for_backend(
			name=name, room_id=room_id, description=description, start_time=start_time, notes=notes,
		)
		return await self._post("/active/combined", body, map_combined_group_response, "Create combined group")

	async def update_combined_group(self, combined_group_id: str, **fields) -> CombinedGroup:
		body = prepare_combined_group_for_backend(**fields)
		return await self._put(f"/active/combined/{combined_group_id}", body, map_combined_group_response, "Update combined group")

	async def delete_combined_group(self, combined_group_id: str) -> None:
		await self._delete(f"/active/combined/{combined_group_id}", "Delete combined group")

	async def end_combined_group(self, combined_group_id: str) -> CombinedGroup:
		return await self._post(f"/active/combined/{combined_group_id}/end", None, map_combined_group_response, "End combined group")

	# Group mappings

	async def get_group_mappings_by_group(self, active_group_id: str) -> List[GroupMapping]:
		return await self._get_list(f"/active/mappings/group/{active_group_id}", map_group_mapping_response, "Get group mappings by group")

	async def get_group_mappings_by_combined(self, combined_group_id: str) -> List[GroupMapping]:
		return await self._get_list(
			f"/active/mappings/combined/{combined_group_id}",
			map_group_mapping_response,
			"Get group mappings by combined",
		)

	async def add_group_to_combination(self, active_group_id: str, combined_group_id: str) -> GroupMapping:
		"""Add an active group to a combined group.

		A group belongs to at most one combined group; remove it from any
		previous combination first. That is not checked here.
		"""
		body = prepare_group_mapping_for_backend(active_group_id, combined_group_id)
		return await self._post("/active/mappings/add", body, map_group_mapping_response, "Add group to combination")

	async def remove_group_from_combination(self, active_group_id: str, combined_group_id: str) -> None:
		body = prepare_group_mapping_for_backend(active_group_id, combined_group_id)
		await self._post_void("/active/mappings/remove", body, "Remove group from combination")

	# Analytics

	async def get_analytics_counts(self) -> Analytics:
		return await self._get("/active/analytics/counts", map_analytics_response, "Get analytics counts")

	async def get_room_utilization(self, room_id: str) -> Analytics:
		return await self._get(f"/active/analytics/room/{room_id}/utilization", map_analytics_response, "Get room utilization")

	async def get_student_attendance(self, student_id: str) -> Analytics:
		return await self._get(
			f"/active/analytics/student/{student_id}/attendance",
			map_analytics_response,
			"Get student attendance",
		)

	# Schulhof

	async def get_schulhof_status(self) -> SchulhofStatus:
		return await self._get("/active/schulhof/status", map_schulhof_status_response, "Get Schulhof status")

	async def toggle_schulhof_supervision(self, action: str) -> ToggleSupervisionResult:
		"""Start or stop supervising the schoolyard as the current user.

		Args:
			action: "start" or "stop"
		"""
		if action not in (SCHULHOF_ACTION_START, SCHULHOF_ACTION_STOP):
			raise ValueError(f"Unknown supervision action: {action!r}")
		return await self._post(
			"/active/schulhof/supervise",
			{"action": action},
			map_toggle_supervision_response,
			"Toggle Schulhof supervision",
		)
