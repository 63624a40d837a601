"""
Response envelope for the wabridge HTTP facade.

Every JSON response is {success, message, data?}; data is omitted when
there is nothing to report.
"""
from __future__ import annotations

from typing import Any


def envelope(message: str, data: Any | None = None, success: bool = True) -> dict[str, Any]:
    body: dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    return body
