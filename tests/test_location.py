#!/usr/bin/env python3
"""Tests for location string parsing."""

import pytest

from ogs_presence.location import (
	is_group_room,
	is_home_location,
	is_present_location,
	is_schoolyard_location,
	is_student_in_group_room,
	is_transit_location,
	normalize_location,
	parse_location,
)
from ogs_presence.models import LocationStatus, ParsedLocation, StudentLocationContext


def test_room_presence_carries_room_name():
	parsed = parse_location("Anwesend - Raum 101")
	assert parsed == ParsedLocation(LocationStatus.PRESENT_IN_ROOM, "Raum 101")


@pytest.mark.parametrize("raw, status", [
	("Zuhause", LocationStatus.HOME),
	("Schulhof", LocationStatus.SCHOOLYARD),
	("Unterwegs", LocationStatus.TRANSIT),
])
def test_bare_tokens(raw, status):
	parsed = parse_location(raw)
	assert parsed.status is status
	assert parsed.room_name is None


def test_present_without_room():
	parsed = parse_location("Anwesend")
	assert parsed.status is LocationStatus.PRESENT_IN_ROOM
	assert parsed.room_name is None


@pytest.mark.parametrize("raw", [
	"",
	None,
	"Unbekannt",
	"anwesend - raum 1",
	"Anwesend -",
	"   ",
	"Anwesend-Raum 101",
	"\x00",
	"Zuhause und Schulhof",
	42,
])
def test_parser_is_total_and_degrades_to_home(raw):
	parsed = parse_location(raw)
	assert parsed.status is LocationStatus.HOME
	assert parsed.room_name is None


def test_legacy_absent_value_is_home():
	assert normalize_location("Abwesend") == "Zuhause"
	assert parse_location("Abwesend").status is LocationStatus.HOME


def test_room_name_is_trimmed():
	assert parse_location("Anwesend -  Mensa ").room_name == "Mensa"


def test_predicates():
	assert is_home_location("Zuhause")
	assert is_home_location("")
	assert is_transit_location("Unterwegs")
	assert is_schoolyard_location("Schulhof")
	assert is_present_location("Anwesend - Raum 101")
	assert not is_present_location("Schulhof")


def test_group_room_matches_case_insensitively():
	assert is_group_room("Anwesend - Raum 101", ["raum 101 "])
	assert not is_group_room("Anwesend - Raum 102", ["Raum 101"])


def test_group_room_flag_only_applies_to_rooms():
	assert is_group_room("Anwesend - Raum 102", [], known_group_room=True)
	assert not is_group_room("Zuhause", ["Raum 101"], known_group_room=True)


def test_group_room_without_known_rooms():
	assert not is_group_room("Anwesend - Raum 101")
	assert not is_group_room("Anwesend", ["Raum 101"])


def test_student_in_group_room_by_name():
	student = StudentLocationContext("1", current_location="Anwesend - Raum 101")
	assert is_student_in_group_room(student, "raum 101")
	assert not is_student_in_group_room(student, "Raum 202")


def test_student_in_group_room_falls_back_to_room_id():
	student = StudentLocationContext("1", current_location="Anwesend - Raum 7")
	assert is_student_in_group_room(student, "Gruppenraum", room_id="7")


def test_student_in_group_room_needs_location_and_room():
	assert not is_student_in_group_room(StudentLocationContext("1"), "Raum 101")
	assert not is_student_in_group_room(StudentLocationContext("1", current_location="Anwesend - Raum 101"), None)


def test_room_id_fallback_matches_substrings():
	# the id is looked for anywhere in the raw location
	student = StudentLocationContext("1", current_location="Anwesend - Raum 101")
	assert is_student_in_group_room(student, "Gruppenraum", room_id="1")
	assert is_student_in_group_room(student, "Gruppenraum", room_id=101)
	assert not is_student_in_group_room(student, "Gruppenraum", room_id="7")
