"""Tests for the call signaling channel."""

import pytest

from smart_ambulance.core.errors import NotFoundError, ValidationError
from smart_ambulance.schemas import PartyKind
from smart_ambulance.services import lifecycle, signaling


def test_poll_returns_newest_unpicked_then_falls_back():
    t1 = signaling.place_call(PartyKind.ambulance, "HOSP1", "https://meet.example/1")
    t2 = signaling.place_call(PartyKind.ambulance, "HOSP1", "https://meet.example/2")
    t3 = signaling.place_call(PartyKind.ambulance, "HOSP1", "https://meet.example/3")

    assert signaling.poll_incoming(PartyKind.hospital, "HOSP1").id == t3.id
    assert signaling.poll_incoming(PartyKind.hospital, "HOSP1").id == t3.id

    signaling.acknowledge(t3.id)
    assert signaling.poll_incoming(PartyKind.hospital, "HOSP1").id == t2.id

    signaling.acknowledge(t2.id)
    signaling.acknowledge(t1.id)
    assert signaling.poll_incoming(PartyKind.hospital, "HOSP1") is None


def test_poll_only_sees_calls_from_the_other_party_to_the_listener():
    signaling.place_call(PartyKind.ambulance, "HOSP1", "https://meet.example/a")
    signaling.place_call(PartyKind.hospital, "AMB1", "https://meet.example/b")
    signaling.place_call(PartyKind.ambulance, "HOSP2", "https://meet.example/c")

    assert signaling.poll_incoming(PartyKind.hospital, "HOSP1").url == "https://meet.example/a"
    assert signaling.poll_incoming(PartyKind.ambulance, "AMB1").url == "https://meet.example/b"
    assert signaling.poll_incoming(PartyKind.ambulance, "HOSP1") is None
    assert signaling.poll_incoming(PartyKind.hospital, "AMB1") is None


def test_duplicate_calls_are_not_merged():
    first = signaling.place_call(PartyKind.hospital, "AMB1", "https://meet.example/x")
    second = signaling.place_call(PartyKind.hospital, "AMB1", "https://meet.example/x")
    assert first.id != second.id


def test_double_acknowledge_reports_already_picked():
    call = signaling.place_call(PartyKind.hospital, "AMB1", "https://meet.example/x")
    assert signaling.acknowledge(call.id) is False
    assert signaling.acknowledge(call.id) is True


def test_acknowledge_validation():
    with pytest.raises(ValidationError):
        signaling.acknowledge(None)
    with pytest.raises(NotFoundError):
        signaling.acknowledge(12345)


def test_place_call_requires_url_and_target():
    with pytest.raises(ValidationError):
        signaling.place_call(PartyKind.ambulance, "HOSP1", "  ")
    with pytest.raises(ValidationError):
        signaling.place_call(PartyKind.ambulance, "", "https://meet.example/x")


def test_ambulance_target_follows_selected_hospital(registry):
    with pytest.raises(ValidationError):
        signaling.hospital_target_for("AMB1")
    lifecycle.start("AMB1")
    with pytest.raises(ValidationError):
        signaling.hospital_target_for("AMB1")
    lifecycle.update_field("AMB1", "hospital", "City Hospital")
    assert signaling.hospital_target_for("AMB1") == "HOSP1"
    lifecycle.update_field("AMB1", "hospital", "Unlisted Clinic")
    assert signaling.hospital_target_for("AMB1") == "Unlisted Clinic"
