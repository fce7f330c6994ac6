"""Helpers that shape stored records for API responses."""
from __future__ import annotations

from typing import Any, Mapping

from school_api.core.utils import absolute_url


def image_url(filename: str | None, url_prefix: str, base_url: str) -> str | None:
    if not filename:
        return None
    return absolute_url(f"{url_prefix.rstrip('/')}/{filename}", base_url)


def present_record(record: Mapping[str, Any], url_prefix: str, base_url: str) -> dict:
    """
    Replace the stored ``imageFilename`` with a public ``imageUrl`` (or None).
    """
    shaped = {key: value for key, value in record.items() if key != "imageFilename"}
    shaped["imageUrl"] = image_url(record.get("imageFilename"), url_prefix, base_url)
    return shaped
