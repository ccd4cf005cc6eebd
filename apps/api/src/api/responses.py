"""Success envelope, the counterpart of api.errors."""

from typing import Any


def success(data: Any = None, message: str | None = None, **extra: Any) -> dict:
    """Build ``{"success": true, "data": ..., "message": ...}``."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    body.update(extra)
    return body
