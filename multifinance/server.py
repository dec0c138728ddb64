"""HTTP application assembly and the command that starts the server."""

from __future__ import annotations

import argparse
import functools
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Optional

from flask import Flask
from sqlalchemy.orm import Session

from multifinance.config import Config, load_config
from multifinance.database import get_database_connection
from multifinance.logger import get_logger
from multifinance.middleware import timeout
from multifinance.routes import (
    register_konsumen_routes,
    register_limit_routes,
    register_record_transaction_routes,
)

DEFAULT_REQUEST_TIMEOUT = 5.0
DEFAULT_UPLOAD_DIR = "storage/uploads"


def _with_session_cleanup(view: Callable[..., Any], session: Any) -> Callable[..., Any]:
    # A thread-local session registry is released in the thread that used it.
    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return view(*args, **kwargs)
        finally:
            session.remove()

    return wrapper


def create_app(
    session: Session,
    upload_dir: str | Path = DEFAULT_UPLOAD_DIR,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> Flask:
    """Build the Flask application with every route behind the timeout middleware."""
    app = Flask(__name__, static_folder=None)

    register_konsumen_routes(app, session, upload_dir)
    register_limit_routes(app, session)
    register_record_transaction_routes(app, session)

    guard = timeout(request_timeout)
    releases_session = callable(getattr(session, "remove", None))
    for endpoint, view in list(app.view_functions.items()):
        if releases_session:
            view = _with_session_cleanup(view, session)
        app.view_functions[endpoint] = guard(view)
    return app


def _listen_port(port: str) -> int:
    # An empty port lets the operating system choose one.
    return int(port) if port else 0


class Server:
    """Connects to the database and serves the HTTP application."""

    def __init__(
        self,
        config: Optional[Config] = None,
        upload_dir: str | Path = DEFAULT_UPLOAD_DIR,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.config = config
        self.upload_dir = upload_dir
        self.request_timeout = request_timeout

    def run(self) -> None:
        """Serve until interrupted; exits with status 1 when startup fails."""
        config = self.config or load_config()
        log = get_logger("Server")
        try:
            session = get_database_connection(config)
            port = _listen_port(config.server.port)
        except (ConnectionError, ValueError) as exc:
            log.critical(str(exc))
            raise SystemExit(1) from exc

        app = create_app(session, self.upload_dir, self.request_timeout)
        try:
            app.run(host="0.0.0.0", port=port)
        except OSError as exc:
            log.critical(str(exc))
            raise SystemExit(1) from exc


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the server configured from the environment."""
    parser = argparse.ArgumentParser(
        prog="multifinance",
        description="Serve the consumer, credit limit and transaction API. "
        "Settings are read from APP_* and DB_* environment variables.",
    )
    parser.parse_args(argv)
    Server().run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())