"""memberwatch entry point.

Startup order: load state, connect to Slack (events are buffered from here
on), seed deactivated members, then start processing. Any fault the worker
cannot handle ends the process with a non-zero status so the supervisor
restarts it.
"""
import logging
import signal

from slack_sdk import WebClient

from . import config
from .config import ConfigError
from .health_server import start_health_server
from .listener import EventRelay, build_socket_client, connect_with_retry
from .log import configure_logging
from .services.reconcile import seed_deactivated_members
from .slack.platform import SlackPlatform
from .storage import open_store
from .version import __version__

log = logging.getLogger("memberwatch.main")


def main() -> int:
    # env-only level first so config loading is logged, then the file's level
    configure_logging()
    cfg = config.load_config()
    configure_logging(cfg=cfg)
    log.info("=== memberwatch v%s starting ===", __version__)

    try:
        bot_token, app_token = config.slack_tokens(cfg)
        health_port = config.health_port(cfg)
    except ConfigError as exc:
        log.critical("FATAL: %s", exc)
        return 1

    channel = config.notification_channel(cfg)
    if not channel:
        log.error("NOTIFICATION_CHANNEL is not set; announcements will be dropped")

    store = open_store(config.data_dir(cfg))
    platform = SlackPlatform(WebClient(token=bot_token))
    relay = EventRelay(store, platform, channel, config.workspace_name(cfg))

    if health_port is not None:
        start_health_server(relay, health_port)

    socket_client = build_socket_client(app_token, platform, relay)
    try:
        connect_with_retry(socket_client, config.reconnect_delay(cfg))
    except Exception:
        log.critical("FATAL: could not connect to Slack")
        return 1

    seed_deactivated_members(store, platform)
    relay.start()
    log.info("memberwatch is running")

    def _shutdown(signum, frame):
        log.info("Received signal %s; shutting down", signum)
        relay.stop()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    while not relay.wait(timeout=1.0):
        pass

    try:
        socket_client.close()
    except Exception:
        log.exception("Error closing Socket Mode client")

    if relay.fatal_error is not None:
        log.critical("FATAL: event worker stopped: %s", relay.fatal_error)
        return 1
    log.info("=== memberwatch stopped ===")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
