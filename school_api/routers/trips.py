from __future__ import annotations

from fastapi import APIRouter, File, Form, Request, UploadFile

from school_api.routers import common

RESOURCE = "trips"
router = APIRouter(prefix="/trips", tags=["trips"])


@router.get("")
def list_trips(request: Request):
    return common.list_entries(request, RESOURCE)


@router.post("")
async def create_trip(request: Request,
                      destination: str | None = Form(None),
                      date: str | None = Form(None),
                      description: str | None = Form(None),
                      image: UploadFile | None = File(None)):
    values = {"destination": destination, "date": date, "description": description}
    return await common.create_entry(request, RESOURCE, values, image)


@router.delete("/{entry_id}")
def delete_trip(entry_id: str, request: Request):
    return common.delete_entry(request, RESOURCE, entry_id)
