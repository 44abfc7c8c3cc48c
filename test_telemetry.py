"""Tests for the telemetry broadcaster."""

import json

import pytest

import telemetry
from telemetry import emit_telemetry, emitter


@pytest.fixture
def listener():
    q = emitter.subscribe()
    yield q
    emitter.unsubscribe(q)


def test_emitter_is_a_singleton():
    assert telemetry.TelemetryEmitter() is emitter


def test_events_reach_subscribers(listener):
    emit_telemetry("ListingAgent", "started", {"priorityKeyword": "Handmade Mug"})

    event = json.loads(listener.get_nowait())
    assert event["type"] == "listing_telemetry"
    assert event["agent"] == "ListingAgent"
    assert event["action"] == "started"
    assert event["data"] == {"priorityKeyword": "Handmade Mug"}


def test_unsubscribed_queue_gets_nothing():
    q = emitter.subscribe()
    emitter.unsubscribe(q)
    emit_telemetry("ListingAgent", "started")
    assert q.empty()


def test_full_queue_drops_events(listener, monkeypatch):
    monkeypatch.setattr(emitter, "dropped", 0)
    for _ in range(telemetry.MAX_QUEUED_EVENTS + 2):
        emit_telemetry("AltTextAgent", "completed")

    assert listener.qsize() == telemetry.MAX_QUEUED_EVENTS
    assert emitter.dropped == 2
