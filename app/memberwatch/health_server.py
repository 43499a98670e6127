import logging
import threading

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from .listener import STATE_READY, EventRelay
from .version import __version__

log = logging.getLogger("memberwatch.health")


def create_app(relay: EventRelay) -> FastAPI:
    app = FastAPI(title="memberwatch", version=__version__)

    @app.get("/health/live")
    def live():
        return {
            "status": "alive",
            "service": "memberwatch",
            "version": __version__,
        }

    @app.get("/health/ready")
    def ready():
        body = {
            "status": relay.state,
            "service": "memberwatch",
            "version": __version__,
            "tracked_members": len(relay.store),
            "pending_events": relay.queue.qsize(),
        }
        status_code = 200 if relay.state == STATE_READY else 503
        return JSONResponse(body, status_code=status_code)

    return app


def start_health_server(relay: EventRelay, port: int, host: str = "0.0.0.0") -> threading.Thread:
    """Serve the health app on a daemon thread; it dies with the process."""
    config = uvicorn.Config(create_app(relay), host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="memberwatch-health", daemon=True)
    thread.start()
    log.info("Health server listening on %s:%d", host, port)
    return thread
