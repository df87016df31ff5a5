"""API server for the feed syndication service."""

import threading
import time
import uuid
from typing import Optional

import structlog
from flask import Flask, Response, current_app, g, jsonify, redirect, request
from werkzeug.serving import make_server

from .config import SyndicatorConfig
from .core.rss import RSS_CONTENT_TYPE, render_rss
from .errors import SyndicatorError
from .services import Services, build_services

logger = structlog.get_logger(__name__)


def _services() -> Services:
    return current_app.extensions["feed_syndicator"]


def _rss_response(feed) -> Response:
    return Response(render_rss(feed), status=200, content_type=RSS_CONTENT_TYPE)


def _log_request_start() -> None:
    g.request_started = time.time()
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    logger.info(
        "request_started",
        ip=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        method=request.method,
        path=request.path,
        query=request.args.to_dict(),
    )


def _log_request_end(response: Response) -> Response:
    duration_ms = round((time.time() - g.get("request_started", time.time())) * 1000, 2)
    log = logger.info
    if response.status_code >= 500:
        log = logger.error
    elif response.status_code >= 400:
        log = logger.warning
    log("request_finished", status=response.status_code, duration_ms=duration_ms)
    return response


def _handle_error(error: SyndicatorError):
    return (
        jsonify({"error": error.message, "category": error.category.value}),
        error.status_code,
    )


def facebook_rss():
    """Serve the feed of a Graph API page."""
    username = request.args.get("username", "").strip()
    if not username:
        return jsonify({"error": "Missing user query parameter"}), 400
    return _rss_response(_services().facebook.get_feed(username))


def twitter_rss(username: str):
    """Serve the feed of a profile timeline."""
    return _rss_response(_services().twitter.get_feed(username))


def facebook_image(image_id: str):
    """Redirect to the largest variant of an image."""
    return redirect(_services().graph.fetch_image_source(image_id), code=302)


def facebook_video(video_id: str):
    """Redirect to the source of a video."""
    return redirect(_services().graph.fetch_video_source(video_id), code=302)


def facebook_profile_picture(user: str):
    """Redirect to a profile's picture."""
    return redirect(_services().graph.fetch_profile_picture(user), code=302)


def evict_cache():
    """Delete every cached feed. Called by the external scheduler."""
    evicted = _services().eviction.run()
    return jsonify({"evicted": evicted}), 200


def create_app(
    config: Optional[SyndicatorConfig] = None, services: Optional[Services] = None
) -> Flask:
    """Create the Flask application.

    Args:
        config: Configuration, read from the environment when omitted
        services: Prebuilt services, built from ``config`` when omitted

    Returns:
        Configured Flask app
    """
    if services is None:
        services = build_services(config or SyndicatorConfig.from_env())

    app = Flask(__name__)
    app.extensions["feed_syndicator"] = services

    app.before_request(_log_request_start)
    app.after_request(_log_request_end)
    app.register_error_handler(SyndicatorError, _handle_error)

    app.add_url_rule("/rss", view_func=facebook_rss)
    app.add_url_rule("/twitter-rss/<username>", view_func=twitter_rss)
    app.add_url_rule("/facebook/image/<image_id>", view_func=facebook_image)
    app.add_url_rule("/facebook/video/<video_id>", view_func=facebook_video)
    app.add_url_rule("/facebook/profile-picture/<user>", view_func=facebook_profile_picture)
    app.add_url_rule("/cache/evict", view_func=evict_cache, methods=["POST"])
    return app


class ServerThread(threading.Thread):
    def __init__(self, app, host, port):
        threading.Thread.__init__(self)
        self.server = make_server(host, port, app, threaded=True)
        self.ctx = app.app_context()
        self.ctx.push()

    def run(self):
        self.server.serve_forever()

    def shutdown(self):
        self.server.shutdown()


def start_api_server(app: Flask, host: str = "0.0.0.0", port: int = 8000) -> ServerThread:
    """Start the API server in a background thread."""
    server = ServerThread(app, host, port)
    server.daemon = True
    server.start()
    logger.info("API server started", host=host, port=port)
    return server
