"""Base URL normalization.

Telemetry is keyed by origin (``scheme://host[:port]``), which is coarser
than the website URLs users declare. Both sides must be normalized before
joining them.
"""

from __future__ import annotations

from urllib.parse import urlsplit

_DEFAULT_PORTS = {"http": "80", "https": "443"}


def get_base_url(url: str) -> str:
    """Return ``scheme://host`` for a URL, or the input unchanged if it has no scheme or host."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    scheme = parts.scheme.lower()
    host = parts.netloc.rsplit("@", 1)[-1].lower()  # drop userinfo
    default_port = _DEFAULT_PORTS.get(scheme)
    if default_port and host.endswith(f":{default_port}"):
        host = host.rsplit(":", 1)[0]
    return f"{scheme}://{host}"


def website_label(base_url: str, websites: list[str]) -> str:
    """Return the declared website URL that belongs to ``base_url``, or ``base_url`` itself."""
    for website in websites:
        if get_base_url(website) == base_url:
            return website
    return base_url
