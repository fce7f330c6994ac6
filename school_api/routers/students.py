"""Students router; ``achievements`` may be sent once or repeated."""
from __future__ import annotations

from fastapi import APIRouter, File, Form, Request, UploadFile

from school_api.routers import common

RESOURCE = "students"
router = APIRouter(prefix="/students", tags=["students"])


@router.get("")
def list_students(request: Request):
    return common.list_entries(request, RESOURCE)


@router.post("")
async def create_student(request: Request,
                         name: str | None = Form(None),
                         grade: str | None = Form(None),
                         achievements: list[str] | None = Form(None),
                         image: UploadFile | None = File(None)):
    values = {"name": name, "grade": grade, "achievements": achievements}
    return await common.create_entry(request, RESOURCE, values, image)


@router.delete("/{entry_id}")
def delete_student(entry_id: str, request: Request):
    return common.delete_entry(request, RESOURCE, entry_id)
