from __future__ import annotations

from fastapi import APIRouter, File, Form, Request, UploadFile

from school_api.routers import common

RESOURCE = "radio"
router = APIRouter(prefix="/radio", tags=["radio"])


@router.get("")
def list_radio(request: Request):
    return common.list_entries(request, RESOURCE)


@router.post("")
async def create_radio_entry(request: Request,
                             title: str | None = Form(None),
                             description: str | None = Form(None),
                             image: UploadFile | None = File(None)):
    values = {"title": title, "description": description}
    return await common.create_entry(request, RESOURCE, values, image)


@router.delete("/{entry_id}")
def delete_radio_entry(entry_id: str, request: Request):
    return common.delete_entry(request, RESOURCE, entry_id)
