"""OpenAPI customization utilities.

Documents the throttling contract on every rate-limited operation:
- a ``429`` response with a plain-text body
- the ``RateLimit-*`` response headers on success and throttled responses
- ``Retry-After`` on throttled responses

Health endpoints are never rate limited and are left untouched.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from throttle.core.rate_limit import HEADER_LIMIT, HEADER_REMAINING, HEADER_RESET

_QUOTA_HEADERS: Dict[str, Any] = {
    HEADER_LIMIT: {
        "description": "Maximum number of requests allowed per period.",
        "schema": {"type": "integer"},
    },
    HEADER_REMAINING: {
        "description": "Requests left in the client's current window.",
        "schema": {"type": "integer", "minimum": 0},
    },
    HEADER_RESET: {
        "description": "Seconds until the client's window resets.",
        "schema": {"type": "integer", "minimum": 0},
    },
}

_TOO_MANY_REQUESTS: Dict[str, Any] = {
    "description": "Rate limit exceeded.",
    "headers": {
        **_QUOTA_HEADERS,
        "Retry-After": {
            "description": "Seconds to wait before retrying.",
            "schema": {"type": "integer", "minimum": 0},
        },
    },
    "content": {"text/plain": {"schema": {"type": "string"}}},
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to document rate limiting."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Status",
                "description": "Rate-limited service endpoints.",
            },
            {
                "name": "Health",
                "description": "Liveness checks (never rate limited).",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                responses.setdefault("429", _TOO_MANY_REQUESTS)
                for code, response in responses.items():
                    if code.startswith("2") and isinstance(response, dict):
                        response.setdefault("headers", {}).update(_QUOTA_HEADERS)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
