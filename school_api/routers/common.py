"""Request handling shared by the resource routers: service lookup, error mapping, response shaping."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from fastapi import Request, UploadFile
from fastapi.responses import JSONResponse

from school_api.core.utils import public_base
from school_api.repositories.json_storage import (
    MalformedDataError,
    NotFoundError,
    StorageReadError,
    StorageWriteError,
)
from school_api.services.record_display import present_record
from school_api.services.resource_service import ResourceService
from school_api.services.upload_service import (
    EmptyUploadError,
    FileTooLargeError,
    InvalidFileTypeError,
    UploadError,
)

logger = logging.getLogger(__name__)


def get_service(request: Request, name: str) -> ResourceService:
    services = getattr(getattr(request.app, "state", None), "resource_services", None) or {}
    svc = services.get(name)
    if not svc:
        raise RuntimeError(f"Service for '{name}' not configured")
    return svc


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_entry_id(raw: str) -> int | None:
    value = (raw or "").strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def _base_url(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    return public_base(request, getattr(settings, "public_base_url", ""))


def _present(svc: ResourceService, record: Mapping[str, Any], request: Request) -> dict:
    return present_record(record, svc.config.url_prefix, _base_url(request))


def list_entries(request: Request, name: str) -> JSONResponse:
    svc = get_service(request, name)
    try:
        records = svc.list_entries()
    except StorageReadError:
        logger.exception("Reading %s failed", name)
        return error_response(500, "Error reading database file.")
    except MalformedDataError:
        logger.exception("Parsing %s failed", name)
        return error_response(500, "Error parsing JSON data.")
    return JSONResponse(content=[_present(svc, record, request) for record in records])


async def _json_values(request: Request) -> dict | None:
    """Body fields of an application/json request; None when the body is not a JSON object."""
    try:
        payload = await request.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _is_json(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


async def create_entry(
    request: Request, name: str, values: Mapping[str, Any], image: UploadFile | None
) -> JSONResponse:
    svc = get_service(request, name)
    if _is_json(request):
        json_values = await _json_values(request)
        if json_values is None:
            return error_response(400, "Request body must be a JSON object.")
        values = json_values
    try:
        record = await svc.create_entry(values, image)
    except (InvalidFileTypeError, FileTooLargeError, EmptyUploadError) as exc:
        return error_response(400, exc.message)
    except UploadError as exc:
        return error_response(500, exc.message)
    except StorageReadError:
        logger.exception("Reading %s failed while creating an entry", name)
        return error_response(500, "Error reading database file.")
    except MalformedDataError:
        logger.exception("Parsing %s failed while creating an entry", name)
        return error_response(500, "Error parsing JSON file.")
    except StorageWriteError:
        logger.exception("Saving %s failed", name)
        return error_response(500, "Error saving data.")
    return JSONResponse(
        status_code=201,
        content={"message": svc.config.created_message, "newEntry": _present(svc, record, request)},
    )


def delete_entry(request: Request, name: str, raw_id: str) -> JSONResponse:
    svc = get_service(request, name)
    record_id = parse_entry_id(raw_id)
    if record_id is None:
        return error_response(404, svc.config.not_found_message)
    try:
        record = svc.delete_entry(record_id)
    except NotFoundError:
        return error_response(404, svc.config.not_found_message)
    except StorageReadError:
        logger.exception("Reading %s failed while deleting %s", name, record_id)
        return error_response(500, f"Error reading {name} data.")
    except MalformedDataError:
        logger.exception("Parsing %s failed while deleting %s", name, record_id)
        return error_response(500, f"Error processing {name} data.")
    except StorageWriteError:
        logger.exception("Saving %s failed while deleting %s", name, record_id)
        return error_response(500, f"Error saving {name} data.")
    return JSONResponse(
        content={"message": svc.config.deleted_message, "deletedEntry": _present(svc, record, request)}
    )
