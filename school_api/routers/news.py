from __future__ import annotations

from fastapi import APIRouter, File, Form, Request, UploadFile

from school_api.routers import common

RESOURCE = "news"
router = APIRouter(prefix="/news", tags=["news"])


@router.get("")
def list_news(request: Request):
    return common.list_entries(request, RESOURCE)


@router.post("")
async def create_news(request: Request,
                      title: str | None = Form(None),
                      content: str | None = Form(None),
                      image: UploadFile | None = File(None)):
    values = {"title": title, "content": content}
    return await common.create_entry(request, RESOURCE, values, image)


@router.delete("/{entry_id}")
def delete_news(entry_id: str, request: Request):
    return common.delete_entry(request, RESOURCE, entry_id)
