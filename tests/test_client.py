#!/usr/bin/env python3
"""Tests for the active-session API client."""

import asyncio
import logging
from datetime import datetime, timezone

import pytest

from conftest import API_URL, FakeSession
from ogs_presence.auth import StaticTokenProvider
from ogs_presence.client import ActiveServiceClient
from ogs_presence.exceptions import OGSAPIError, OGSAuthError, OGSClaimError, OGSDataError
from ogs_presence.transport import TransportContext

ACTIVE_GROUP = {"id": 1, "group_id": 10, "room_id": 5, "start_time": "2024-01-15T08:00:00Z", "is_active": True}
VISIT = {"id": 7, "student_id": 50, "active_group_id": 1, "check_in_time": "2024-01-15T08:05:00Z"}
SUPERVISOR = {"id": 2, "staff_id": 8, "active_group_id": 1, "start_time": "2024-01-15T08:00:00Z"}
COMBINED = {"id": 4, "name": "Nachmittag", "room_id": 5}


def _run(coro):
	return asyncio.run(coro)


def _last_call(session):
	method, url, kwargs = session.calls[-1]
	return method, url[len(API_URL):], kwargs.get("json")


def test_get_active_groups_accepts_every_envelope(client, session):
	for payload in ([ACTIVE_GROUP], {"data": [ACTIVE_GROUP]}, {"data": {"data": [ACTIVE_GROUP]}}):
		session.queue(200, payload)
		groups = _run(client.get_active_groups())
		assert [g.id for g in groups] == ["1"]
	assert _last_call(session)[:2] == ("GET", "/active/groups")


def test_active_filter_in_query(client, session):
	session.queue(200, {"data": []})
	session.queue(200, {"data": []})
	_run(client.get_active_groups(active=True))
	assert session.calls[0][1].endswith("/active/groups?active=true")
	_run(client.get_visits(active=False))
	assert session.calls[1][1].endswith("/active/visits?active=false")


def test_active_groups_page_keeps_pagination(client, session):
	session.queue(200, {"data": {"data": [ACTIVE_GROUP], "pagination": {"current_page": 1, "page_size": 50, "total_pages": 2, "total_records": 51}}})
	page = _run(client.get_active_groups_page())
	assert len(page.items) == 1
	assert page.pagination.total_pages == 2


def test_malformed_list_items_are_skipped(client, session, caplog):
	caplog.set_level(logging.WARNING, logger="ogs_presence.client")
	session.queue(200, {"data": [ACTIVE_GROUP, {"group_id": 3}, "junk"]})
	groups = _run(client.get_active_groups_by_room("5"))
	assert [g.id for g in groups] == ["1"]
	assert len(caplog.records) == 2
	assert _last_call(session)[1] == "/active/groups/room/5"


def test_get_single_entity(client, session):
	session.queue(200, {"status": "success", "data": ACTIVE_GROUP})
	group = _run(client.get_active_group("1"))
	assert group.room_id == "5"
	assert _last_call(session)[1] == "/active/groups/1"


def test_single_entity_must_be_an_object(client, session):
	session.queue(200, {"data": None})
	with pytest.raises(OGSDataError):
		_run(client.get_active_group("1"))


def test_create_active_group_body(client, session):
	session.queue(201, {"data": ACTIVE_GROUP})
	start = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
	_run(client.create_active_group("10", "5", start_time=start, notes="Morning"))
	assert _last_call(session) == ("POST", "/active/groups", {
		"group_id": 10,
		"room_id": 5,
		"start_time": "2024-01-15T08:00:00.000Z",
		"notes": "Morning",
	})


def test_update_active_group_sends_only_given_fields(client, session):
	session.queue(200, {"data": ACTIVE_GROUP})
	_run(client.update_active_group("1", notes="Changed"))
	assert _last_call(session) == ("PUT", "/active/groups/1", {"notes": "Changed"})


def test_delete_and_end(client, session):
	session.queue(204)
	session.queue(200, {"data": dict(ACTIVE_GROUP, is_active=False, end_time="2024-01-15T12:00:00Z")})
	assert _run(client.delete_active_group("1")) is None
	assert session.calls[0][0] == "DELETE"
	ended = _run(client.end_active_group("1"))
	assert not ended.is_active
	assert _last_call(session)[:2] == ("POST", "/active/groups/1/end")


def test_ending_twice_surfaces_backend_error(client, session):
	session.queue(409, {"error": "group already ended"})
	with pytest.raises(OGSAPIError) as err:
		_run(client.end_active_group("1"))
	assert str(err.value) == "End active group failed: 409"
	assert not err.value.retryable


def test_visits_with_display_404_is_empty(client, session):
	session.queue(404)
	assert _run(client.get_active_group_visits_with_display("1")) == []
	assert _last_call(session)[1] == "/active/groups/1/visits/display"


def test_visits_list_404_is_raised(client, session):
	session.queue(404)
	with pytest.raises(OGSAPIError):
		_run(client.get_active_group_visits("1"))


def test_current_visit_absent(client, session):
	session.queue(404)
	session.queue(200, {"data": None})
	assert _run(client.get_student_current_visit("50")) is None
	assert _run(client.get_student_current_visit("50")) is None
	assert _last_call(session)[1] == "/active/visits/student/50/current"


def test_current_visit_present(client, session):
	session.queue(200, {"data": VISIT})
	visit = _run(client.get_student_current_visit("50"))
	assert visit.id == "7"
	assert visit.is_active


def test_visit_operations(client, session):
	session.queue(201, {"data": VISIT})
	_run(client.create_visit("50", "1"))
	assert _last_call(session) == ("POST", "/active/visits", {"student_id": 50, "active_group_id": 1})
	session.queue(200, {"data": VISIT})
	_run(client.end_visit("7"))
	assert _last_call(session)[:2] == ("POST", "/active/visits/7/end")
	session.queue(200, {"data": [VISIT]})
	assert len(_run(client.get_visits_by_group("1"))) == 1
	assert _last_call(session)[1] == "/active/visits/group/1"


def test_checkout_student(client, session):
	session.queue(200, {"status": "success"})
	assert _run(client.checkout_student("50")) is None
	assert _last_call(session) == ("POST", "/active/visits/student/50/checkout", {})


def test_supervisor_operations(client, session):
	session.queue(200, {"data": [SUPERVISOR]})
	supervisions = _run(client.get_staff_active_supervisions("8"))
	assert supervisions[0].staff_id == "8"
	assert _last_call(session)[1] == "/active/supervisors/staff/8/active"
	session.queue(201, {"data": SUPERVISOR})
	_run(client.create_supervisor("8", "1"))
	assert _last_call(session) == ("POST", "/active/supervisors", {"staff_id": 8, "active_group_id": 1})
	session.queue(200, {"data": dict(SUPERVISOR, end_time="2024-01-15T10:00:00Z")})
	assert not _run(client.end_supervision("2")).is_active


def test_combined_groups_and_mappings(client, session):
	session.queue(201, {"data": COMBINED})
	combined = _run(client.create_combined_group("Nachmittag", "5", description="Alle"))
	assert combined.name == "Nachmittag"
	assert _last_call(session) == ("POST", "/active/combined", {"name": "Nachmittag", "room_id": 5, "description": "Alle"})

	session.queue(200, {"data": {"id": 9, "active_group_id": 1, "combined_group_id": 4}})
	mapping = _run(client.add_group_to_combination("1", "4"))
	assert mapping.combined_group_id == "4"
	assert _last_call(session) == ("POST", "/active/mappings/add", {"active_group_id": 1, "combined_group_id": 4})

	session.queue(200)
	_run(client.remove_group_from_combination("1", "4"))
	assert _last_call(session) == ("POST", "/active/mappings/remove", {"active_group_id": 1, "combined_group_id": 4})

	session.queue(200, [ACTIVE_GROUP])
	assert len(_run(client.get_combined_group_groups("4"))) == 1
	assert _last_call(session)[1] == "/active/combined/4/groups"


def test_unclaimed_groups(client, session):
	session.queue(200, {"data": {"items": [ACTIVE_GROUP]}})
	groups = _run(client.get_unclaimed_groups())
	assert [g.id for g in groups] == ["1"]
	assert _last_call(session)[1] == "/active/groups/unclaimed"


def test_unclaimed_groups_unexpected_shape(client, session, caplog):
	caplog.set_level(logging.WARNING)
	session.queue(200, {"unexpected": "x"})
	assert _run(client.get_unclaimed_groups()) == []
	assert len([r for r in caplog.records if r.name == "ogs_presence.unclaimed"]) == 1


def test_claim_sends_supervisor_role(client, session):
	session.queue(200, {"status": "success"})
	_run(client.claim_active_group("1"))
	assert _last_call(session) == ("POST", "/active/groups/1/claim", {"role": "supervisor"})


def test_claim_rejection_is_retryable(client, session):
	session.queue(409, {"error": "already claimed"})
	with pytest.raises(OGSClaimError) as err:
		_run(client.claim_active_group("1"))
	assert err.value.status == 409
	assert err.value.retryable


def test_claim_auth_failure_is_not_a_claim_error(client, session):
	session.queue(403)
	with pytest.raises(OGSAuthError) as err:
		_run(client.claim_active_group("1"))
	assert not isinstance(err.value, OGSClaimError)


def test_analytics(client, session):
	session.queue(200, {"data": {"active_groups_count": 3, "active_visits_count": 40}})
	analytics = _run(client.get_analytics_counts())
	assert analytics.active_groups_count == 3
	session.queue(200, {"data": {"room_utilization": 0.75}})
	assert _run(client.get_room_utilization("5")).room_utilization == 0.75
	assert _last_call(session)[1] == "/active/analytics/room/5/utilization"


def test_schulhof(client, session):
	session.queue(200, {"data": {"exists": True, "room_id": 30, "student_count": 4, "supervisors": []}})
	status = _run(client.get_schulhof_status())
	assert status.exists
	assert status.student_count == 4

	session.queue(200, {"data": {"action": "started", "supervision_id": 5, "active_group_id": 77}})
	result = _run(client.toggle_schulhof_supervision("start"))
	assert result.supervision_id == "5"
	assert _last_call(session) == ("POST", "/active/schulhof/supervise", {"action": "start"})


def test_schulhof_rejects_unknown_action(client, session):
	with pytest.raises(ValueError):
		_run(client.toggle_schulhof_supervision("pause"))
	assert session.calls == []


def test_proxy_route():
	session = FakeSession([(200, {"data": []})])
	transport = TransportContext.proxy("https://ogs.example.org", session=session, token_provider=StaticTokenProvider("t"))
	_run(ActiveServiceClient(transport).get_supervisors())
	assert session.calls[0][1] == "https://ogs.example.org/api/active/supervisors"
