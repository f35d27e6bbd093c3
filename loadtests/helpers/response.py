"""Response error extraction for load test observability.

Parses order API error responses into human-readable messages. Every error
the API returns has the shape::

    {"error": {"kind": "...", "message": "...", "identifier": "...", "details": {...}}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a compact error message suitable for Locust failure messages and log lines."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        detail = f"{error.get('kind')}: {error.get('message')}"
        if error.get("identifier"):
            detail += f" [{error['identifier']}]"
        return detail

    return str(body)[:300]
