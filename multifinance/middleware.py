"""Request middleware for the HTTP application."""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from flask import copy_current_request_context, jsonify

from multifinance.logger import get_logger

ViewT = TypeVar("ViewT", bound=Callable[..., Any])

TIMEOUT_STATUS = 504
TIMEOUT_MESSAGE = "request timeout"


def timeout(seconds: float) -> Callable[[ViewT], ViewT]:
    """Return a view decorator that answers 504 when the view runs longer than ``seconds``.

    The view runs in a worker thread with a copy of the request context. When it
    finishes in time its result (or exception) is passed through unchanged; when it
    does not, a JSON error is returned and the worker is left to finish on its own.
    """

    def decorator(view: ViewT) -> ViewT:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            outcome: dict[str, Any] = {}
            done = threading.Event()

            @copy_current_request_context
            def run() -> None:
                try:
                    outcome["value"] = view(*args, **kwargs)
                except BaseException as exc:  # handed back to the request thread
                    outcome["error"] = exc
                finally:
                    done.set()

            threading.Thread(target=run, name=f"view-{view.__name__}", daemon=True).start()

            if not done.wait(seconds):
                get_logger("TimeoutMiddleware").error(TIMEOUT_MESSAGE)
                return jsonify(error=TIMEOUT_MESSAGE), TIMEOUT_STATUS
            if "error" in outcome:
                raise outcome["error"]
            return outcome["value"]

        return wrapper  # type: ignore[return-value]

    return decorator