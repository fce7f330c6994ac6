"""Create/list/delete use cases shared by every resource."""

from __future__ import annotations

from typing import Any, Mapping

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from school_api.core.config import Settings
from school_api.domain.resources import RESOURCES, ResourceConfig
from school_api.repositories.json_storage import JsonRecordStore
from school_api.services.upload_service import UploadHandler


class ResourceService:
    """Binds one resource's store and upload handler."""

    def __init__(self, config: ResourceConfig, store: JsonRecordStore, uploads: UploadHandler) -> None:
        self.config = config
        self.store = store
        self.uploads = uploads

    @classmethod
    def from_settings(cls, config: ResourceConfig, settings: Settings) -> "ResourceService":
        store = JsonRecordStore(
            config.document_path(settings.data_dir),
            config.upload_dir(settings.public_dir),
            id_strategy=config.id_strategy,
            track_updates=config.track_updates,
        )
        uploads = UploadHandler(
            store.upload_dir,
            max_bytes=settings.max_upload_bytes,
            validate_images=config.validate_images or settings.strict_uploads,
        )
        return cls(config, store, uploads)

    def list_entries(self) -> list[dict]:
        return self.store.list_all()

    async def create_entry(self, values: Mapping[str, Any], image: UploadFile | None = None) -> dict:
        """Store the image (if any), then append the record; the store cleans up the image on failure."""
        filename = await self.uploads.save(image)
        # File I/O and the store lock stay off the event loop.
        return await run_in_threadpool(self.store.append, self.config.collect_fields(values), filename)

    def delete_entry(self, record_id: int) -> dict:
        return self.store.delete_by_id(record_id)


def build_resource_services(settings: Settings) -> dict[str, ResourceService]:
    """One service per known resource, with its directories created."""
    services: dict[str, ResourceService] = {}
    for name, config in RESOURCES.items():
        service = ResourceService.from_settings(config, settings)
        service.store.ensure_dirs()
        services[name] = service
    return services
