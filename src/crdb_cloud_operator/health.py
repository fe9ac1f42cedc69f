"""Liveness, readiness and metrics endpoints served next to the operator."""

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Request, Response

_ready = threading.Event()


def set_ready(ready: bool) -> None:
    """Flip the readiness probe once handlers are registered, or back on shutdown."""
    if ready:
        _ready.set()
    else:
        _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def create_combined_wsgi_app() -> Any:
    """Route /healthz and /readyz locally and everything else to Prometheus."""
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        request = Request(environ)

        if request.path == "/healthz":
            response = Response('{"status":"ok"}', mimetype="application/json")
        elif request.path == "/readyz":
            if is_ready():
                response = Response('{"status":"ready"}', mimetype="application/json")
            else:
                response = Response('{"status":"starting"}', mimetype="application/json", status=503)
        else:
            return metrics_app(environ, start_response)
        return response(environ, start_response)

    return combined_app


def start_health_server(port: int) -> threading.Thread:
    """Serve probes and metrics from a daemon thread.

    Args:
        port: Port number to listen on

    Returns:
        The thread running the server
    """
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="health-server", daemon=True)
    thread.start()
    return thread
