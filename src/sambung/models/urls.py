"""Base URL canonicalization.

Provider SDKs append the completion path themselves, so a base URL that
already ends in ``/chat/completions`` turns into a silent 404. Users paste
such URLs often enough that every base URL goes through here first.
"""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

# Only the endpoint is stripped; a "/v1" version segment belongs to the base URL.
_ENDPOINT_SUFFIXES: tuple[str, ...] = ("/chat/completions", "/completions")


def sanitize_base_url(raw: str | None) -> str | None:
    """Strip completion-endpoint suffixes and a trailing slash from a base URL.

    Malformed input is returned unchanged; this function never raises.

    Args:
        raw: User- or environment-supplied base URL.

    Returns:
        The canonical base URL, ``None`` for empty input.

    Example::

        >>> sanitize_base_url("https://api.example.com/v1/chat/completions")
        'https://api.example.com/v1'
    """
    if not raw:
        return None
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    path = parts.path
    previous = None
    # Repeat until stable so that sanitizing a sanitized URL is a no-op,
    # e.g. ".../v1/chat/completions/" or ".../v1//".
    while path != previous:
        previous = path
        if len(path) > 1 and path.endswith("/"):
            path = path[:-1]
        path = _strip_endpoint_suffix(path)
        if len(path) > 1 and path.endswith("/"):
            path = path[:-1]

    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def _strip_endpoint_suffix(path: str) -> str:
    for suffix in _ENDPOINT_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path
