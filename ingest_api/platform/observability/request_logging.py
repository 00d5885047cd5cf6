from __future__ import annotations

import contextvars
import hashlib
import time
import uuid
from typing import Any, Mapping

from starlette.requests import Request

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def new_request_id(prefix: str = "req") -> str:
    """Create a short, human-friendly request id for log correlation."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", errors="replace")).hexdigest()


def summarize_for_log(value: Any, *, max_depth: int = 4, max_str: int = 400, max_items: int = 40) -> Any:
    """
    Summarize submitted form values (JSON-shaped) for logging.
    Long strings such as datastream content keep only len, sha256 and a preview.
    """
    if max_depth <= 0:
        return {"__truncated__": True, "__type__": type(value).__name__}

    if isinstance(value, str) and len(value) > max_str:
        return {
            "__type__": "str",
            "__len__": len(value),
            "__sha256__": sha256_text(value),
            "__preview__": value[: max_str // 2],
        }

    kwargs = dict(max_depth=max_depth - 1, max_str=max_str, max_items=max_items)
    if isinstance(value, Mapping):
        items = list(value.items())
        out: dict[str, Any] = {str(k): summarize_for_log(v, **kwargs) for k, v in items[:max_items]}
        if len(items) > max_items:
            out["__truncated_items__"] = len(items) - max_items
        return out

    if isinstance(value, list):
        out_list = [summarize_for_log(x, **kwargs) for x in value[:max_items]]
        if len(value) > max_items:
            out_list.append({"__truncated_items__": len(value) - max_items})
        return out_list

    return value


def http_context(request: Request) -> dict[str, Any]:
    """
    Common request context for all API logs.
    NOTE: Do not include raw headers by default to avoid leaking secrets.
    """
    client_host = getattr(getattr(request, "client", None), "host", None)
    return {
        "request_id": get_request_id(),
        "http": {
            "method": getattr(request, "method", None),
            "path": str(getattr(getattr(request, "url", None), "path", None)),
            "path_params": dict(getattr(request, "path_params", {}) or {}),
            "client_host": client_host,
        },
    }


class RequestTimer:
    """Small helper for measuring durations in middleware."""

    def __init__(self) -> None:
        self._t0 = time.perf_counter()

    def ms(self) -> int:
        return int((time.perf_counter() - self._t0) * 1000)
