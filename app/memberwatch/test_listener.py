import pytest
from slack_sdk import WebClient
from slack_sdk.socket_mode.request import SocketModeRequest

from memberwatch.conftest import FakeWebClient
from memberwatch.listener import (
    STATE_FAILED,
    STATE_READY,
    STATE_STARTING,
    STATE_STOPPED,
    EventRelay,
    build_socket_client,
    connect_with_retry,
)
from memberwatch.services.reconcile import seed_deactivated_members
from memberwatch.slack.platform import SlackPlatform


class FakeSocketClient:
    def __init__(self, failures=0):
        self.acks = []
        self.failures = failures
        self.connect_calls = 0

    def send_socket_mode_response(self, response):
        self.acks.append(response.envelope_id)

    def connect(self):
        self.connect_calls += 1
        if self.connect_calls <= self.failures:
            raise ConnectionError("socket refused")


def _request(event, envelope_id="env-1", type_="events_api"):
    return SocketModeRequest(type=type_, envelope_id=envelope_id, payload={"event": event})


def _user_change(member_id, **fields):
    return {"type": "user_change", "user": {"id": member_id, **fields}}


@pytest.fixture
def relay(store, platform):
    r = EventRelay(store, platform, "C1", "Aucklandia")
    yield r
    if r.state == STATE_READY:
        r.stop()
        r.wait(timeout=5)


def _drain(relay):
    relay.queue.join()


def test_every_envelope_is_acknowledged(relay):
    socket = FakeSocketClient()

    relay.handle_request(socket, _request({"type": "message"}, "a"))
    relay.handle_request(socket, _request({}, "b", type_="slash_commands"))
    relay.handle_request(socket, _request(_user_change("U1", deleted=True), "c"))

    assert socket.acks == ["a", "b", "c"]
    assert relay.queue.qsize() == 1


def test_events_are_buffered_until_start(relay, web_client, store):
    relay.handle_request(FakeSocketClient(), _request(_user_change("U1", deleted=True)))

    assert relay.state == STATE_STARTING
    assert store.get("U1") is None
    assert web_client.posted == []

    relay.start()
    _drain(relay)

    assert relay.state == STATE_READY
    assert store.get("U1").deleted is True
    assert [m["text"] for m in web_client.posted] == [
        "👋 <@U1> has deactivated their account. Stink."
    ]


def test_reactivation_during_reconciliation_is_replayed_after_seeding(store):
    client = FakeWebClient(pages=[{"members": [{"id": "U2", "deleted": True}]}])
    platform = SlackPlatform(client)
    relay = EventRelay(store, platform, "C1", "Aucklandia")

    relay.handle_request(FakeSocketClient(), _request(_user_change("U2", deleted=False)))
    seed_deactivated_members(store, platform)
    relay.start()
    _drain(relay)
    relay.stop()
    relay.wait(timeout=5)

    assert [m["text"] for m in client.posted] == ["🔄 <@U2> has reactivated their account!"]
    assert store.get("U2").deleted is False


def test_team_join_announces_without_touching_store(relay, web_client, store, state_file):
    relay.handle_request(FakeSocketClient(), _request({"type": "team_join", "user": {"id": "U5"}}))
    relay.start()
    _drain(relay)

    assert [m["text"] for m in web_client.posted] == ["🎉 <@U5> joined Aucklandia!"]
    assert len(store) == 0
    assert state_file.writes == 0


def test_stop_ends_worker_cleanly(relay):
    relay.start()
    relay.stop()

    assert relay.wait(timeout=5) is True
    assert relay.state == STATE_STOPPED
    assert relay.fatal_error is None


def test_unhandled_error_marks_relay_failed(platform):
    class BrokenStore:
        def get(self, member_id):
            raise RuntimeError("disk on fire")

    relay = EventRelay(BrokenStore(), platform, "C1", "Aucklandia")
    relay.handle_request(FakeSocketClient(), _request(_user_change("U1", deleted=True)))
    relay.start()

    assert relay.wait(timeout=5) is True
    assert relay.state == STATE_FAILED
    assert isinstance(relay.fatal_error, RuntimeError)


def test_connect_succeeds_first_time():
    socket = FakeSocketClient()
    sleeps = []

    connect_with_retry(socket, 5, sleep=sleeps.append)

    assert socket.connect_calls == 1
    assert sleeps == []


def test_connect_retries_once_after_delay():
    socket = FakeSocketClient(failures=1)
    sleeps = []

    connect_with_retry(socket, 5, sleep=sleeps.append)

    assert socket.connect_calls == 2
    assert sleeps == [5]


def test_connect_gives_up_after_one_retry():
    socket = FakeSocketClient(failures=2)

    with pytest.raises(ConnectionError):
        connect_with_retry(socket, 5, sleep=lambda _: None)

    assert socket.connect_calls == 2


def test_malformed_event_payload_is_acked_and_ignored(relay):
    socket = FakeSocketClient()
    req = SocketModeRequest(type="events_api", envelope_id="bad", payload={"event": "garbage"})

    relay.handle_request(socket, req)

    assert socket.acks == ["bad"]
    assert relay.queue.qsize() == 0


def test_socket_client_delivers_envelopes_one_at_a_time(relay):
    client = build_socket_client("xapp-test", SlackPlatform(WebClient(token="xoxb-test")), relay)
    try:
        assert client.message_workers._max_workers == 1
        assert relay.handle_request in client.socket_mode_request_listeners
    finally:
        client.close()
