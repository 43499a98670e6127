"""Socket Mode wiring.

Slack delivers envelopes on the Socket Mode client's own threads. Each one is
acknowledged right away and its parsed event is queued; a single worker
thread drains the queue, so the state store only ever has one writer. The
worker is started after startup reconciliation, which means events that
arrive during the scan wait in the queue and are replayed in order.
"""
import logging
import queue
import threading
import time
from typing import Callable, List, Optional, Union

from slack_sdk.socket_mode import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from .models.events import MemberJoined, MemberObservation, NotificationEvent
from .services.detection import apply_observation, handle_member_joined
from .services.events import dispatch_events
from .slack.platform import SlackPlatform, parse_event
from .storage.state import MemberStateStore

log = logging.getLogger("memberwatch.listener")

STATE_STARTING = "starting"
STATE_READY = "ready"
STATE_FAILED = "failed"
STATE_STOPPED = "stopped"

_STOP = object()


class EventRelay:
    def __init__(self,
                 store: MemberStateStore,
                 platform: SlackPlatform,
                 channel: Optional[str],
                 workspace: str):
        self.store = store
        self.platform = platform
        self.channel = channel
        self.workspace = workspace
        self.queue: "queue.Queue" = queue.Queue()
        self.state = STATE_STARTING
        self.fatal_error: Optional[BaseException] = None
        self._worker: Optional[threading.Thread] = None
        self._finished = threading.Event()

    # ── Socket Mode callbacks ───────────────────────────────────
    def handle_request(self, client: SocketModeClient, req: SocketModeRequest) -> None:
        client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))
        if req.type != "events_api":
            return
        payload = req.payload if isinstance(req.payload, dict) else {}
        event = payload.get("event")
        if not isinstance(event, dict):
            log.warning("Ignoring events_api envelope %s without an event object", req.envelope_id)
            return
        item = parse_event(event)
        if item is None:
            return
        if self._worker is None:
            log.debug("Buffering %s until startup completes", event.get("type"))
        self.queue.put(item)

    # ── Processing ──────────────────────────────────────────────
    def process(self, item: Union[MemberJoined, MemberObservation]) -> List[NotificationEvent]:
        if isinstance(item, MemberJoined):
            events = handle_member_joined(item.member_id)
        else:
            events = apply_observation(self.store, item)
        dispatch_events(events, self.platform, self.channel, self.workspace)
        return events

    def start(self) -> None:
        if self._worker is not None:
            return
        pending = self.queue.qsize()
        if pending:
            log.info("Replaying %d event(s) received during startup", pending)
        self._worker = threading.Thread(target=self._run, name="memberwatch-worker", daemon=True)
        self.state = STATE_READY
        self._worker.start()

    def stop(self) -> None:
        self.queue.put(_STOP)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker exits. Returns False on timeout."""
        return self._finished.wait(timeout)

    def _run(self) -> None:
        try:
            while True:
                item = self.queue.get()
                try:
                    if item is _STOP:
                        self.state = STATE_STOPPED
                        return
                    self.process(item)
                finally:
                    self.queue.task_done()
        except Exception as exc:
            log.exception("Unhandled error while processing member event")
            self.fatal_error = exc
            self.state = STATE_FAILED
        finally:
            self._finished.set()


def build_socket_client(app_token: str, platform: SlackPlatform, relay: EventRelay) -> SocketModeClient:
    # one message worker, so envelopes reach the queue in delivery order
    client = SocketModeClient(app_token=app_token, web_client=platform.client, concurrency=1)
    client.socket_mode_request_listeners.append(relay.handle_request)
    client.on_error_listeners.append(_log_socket_error)
    client.on_close_listeners.append(_log_socket_close)
    return client


def _log_socket_error(error: Exception) -> None:
    log.error("Socket Mode connection error: %s", error)


def _log_socket_close(code: int, reason: Optional[str] = None) -> None:
    log.warning("Socket Mode connection closed (code=%s, reason=%s); client will reconnect", code, reason)


def connect_with_retry(client: SocketModeClient,
                       delay: float,
                       sleep: Callable[[float], None] = time.sleep) -> None:
    """Connect, and on failure try exactly once more after ``delay`` seconds."""
    try:
        client.connect()
        log.info("Connected to Slack over Socket Mode")
        return
    except Exception:
        log.exception("Failed to connect to Slack; retrying in %.0fs", delay)

    sleep(delay)
    try:
        client.connect()
    except Exception:
        log.exception("Failed to connect to Slack after retry")
        raise
    log.info("Connected to Slack over Socket Mode after retry")
