import json
import logging

import httpx
import pytest

from app.config import Settings
from app.models import ResponseDecision
from app.services.approval_coordinator import ApprovalCoordinator
from app.services.change_feed import ChangeEvent, ChangeFeed, ChangeOperation
from app.services.notifications import (
    Notification, NotificationSink, LoggingNotificationSink, WebhookNotificationSink,
    NotificationDispatcher, build_notification_sink,
)


class RecordingSink(NotificationSink):
    def __init__(self):
        self.sent = []

    def send(self, notification: Notification) -> None:
        self.sent.append(notification)


def _notification() -> Notification:
    return Notification(
        recipient_ids=["a", "b"],
        record_type="equipment_requests",
        record_id="r1",
        status="approved",
        title="Geräte-Anfrage",
        message="Geräte-Anfrage jetzt im Status 'approved'",
        metadata={"operation": "update"},
    )


def test_webhook_posts_json():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(204)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    sink = WebhookNotificationSink("https://hooks.example.org/sharing", client=client)
    sink.send(_notification())
    sink.close()

    assert len(received) == 1
    assert received[0]["record_id"] == "r1"
    assert received[0]["recipient_ids"] == ["a", "b"]
    assert received[0]["metadata"] == {"operation": "update"}


def test_webhook_errors_are_logged_not_raised(caplog):
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    sink = WebhookNotificationSink("https://hooks.example.org/sharing", client=client)

    with caplog.at_level(logging.WARNING, logger="app.services.notifications"):
        sink.send(_notification())
        sink.close()

    assert "fehlgeschlagen" in caplog.text


def test_build_sink_from_settings():
    assert isinstance(build_notification_sink(Settings(notification_webhook_url="")), LoggingNotificationSink)

    sink = build_notification_sink(Settings(notification_webhook_url="https://hooks.example.org/x"))
    try:
        assert isinstance(sink, WebhookNotificationSink)
    finally:
        sink.close()


def test_dispatcher_notifies_both_parties(db, session_factory, make_request, hospitals):
    sink = RecordingSink()
    feed = ChangeFeed(session_factory)
    feed.subscribe(NotificationDispatcher(session_factory, sink))
    feed.start()
    try:
        request = make_request()
        ApprovalCoordinator(db).respond(request.id, ResponseDecision.APPROVED, hospitals["owner"])
    finally:
        feed.stop()

    by_type = {}
    for notification in sink.sent:
        by_type.setdefault(notification.record_type, []).append(notification)

    assert set(by_type) == {"equipment_requests", "sharing_agreements", "equipment_transfers"}
    for notifications in by_type.values():
        for notification in notifications:
            assert set(notification.recipient_ids) == {hospitals["owner"], hospitals["requester"]}

    # Status wird aus dem aktuellen Stand gelesen, nicht aus dem Event
    request_statuses = [n.status for n in by_type["equipment_requests"]]
    assert request_statuses[-1] == "approved"


def test_dispatcher_skips_deleted_and_missing_records(session_factory):
    sink = RecordingSink()
    dispatcher = NotificationDispatcher(session_factory, sink)

    dispatcher(ChangeEvent("equipment_requests", "weg", ChangeOperation.DELETE))
    dispatcher(ChangeEvent("equipment_requests", "gibt-es-nicht", ChangeOperation.UPDATE, "approved"))
    dispatcher(ChangeEvent("hospitals", "x", ChangeOperation.INSERT))

    assert sink.sent == []


@pytest.mark.parametrize("operation, expected", [
    (ChangeOperation.INSERT, "angelegt"),
    (ChangeOperation.UPDATE, "jetzt im Status"),
])
def test_dispatcher_message(db, session_factory, make_request, hospitals, operation, expected):
    request = make_request()
    sink = RecordingSink()
    NotificationDispatcher(session_factory, sink)(
        ChangeEvent("equipment_requests", request.id, operation, "pending")
    )

    assert len(sink.sent) == 1
    assert expected in sink.sent[0].message
    assert sink.sent[0].status == "pending"
    assert sink.sent[0].metadata == {"operation": operation.value}
