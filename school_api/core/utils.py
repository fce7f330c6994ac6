"""
Utility helpers shared across routers/services.
"""

from urllib.parse import quote

from fastapi import Request


def public_base(request: Request, configured: str = "") -> str:
    """
    Base URL used for absolute links: PUBLIC_BASE_URL when configured,
    otherwise the scheme and host of the current request.
    """
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")


def absolute_url(path: str, base: str) -> str:
    """
    Join a site-relative path onto a base URL, quoting the path segments.
    """
    base_url = (base or "").rstrip("/")
    if not path:
        return base_url + "/"
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return base_url + quote(path)
