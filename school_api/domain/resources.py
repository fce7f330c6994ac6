"""Resource definitions: field layout, messages and upload policy per collection."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence


def max_plus_one(records: Sequence[Mapping[str, Any]]) -> int:
    """Next id: one past the highest id in the collection (1 when empty)."""
    ids = [record.get("id") for record in records]
    return max((value for value in ids if isinstance(value, int)), default=0) + 1


@dataclass(frozen=True)
class ResourceConfig:
    """Static description of one resource collection."""

    name: str
    fields: tuple[str, ...]
    created_message: str
    deleted_message: str
    not_found_message: str
    list_fields: frozenset[str] = frozenset()
    track_updates: bool = False
    validate_images: bool = False
    id_strategy: Callable[[Sequence[Mapping[str, Any]]], int] = field(default=max_plus_one)

    @property
    def url_prefix(self) -> str:
        return f"/public/{self.name}"

    def document_path(self, data_dir: Path) -> Path:
        return Path(data_dir) / f"{self.name}.json"

    def upload_dir(self, public_dir: Path) -> Path:
        return Path(public_dir) / self.name

    def collect_fields(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Keep only the declared fields; list fields always end up as a list of non-empty values."""
        collected: dict[str, Any] = {}
        for name in self.fields:
            value = values.get(name)
            if name in self.list_fields:
                if value is None:
                    items: list[Any] = []
                elif isinstance(value, (list, tuple)):
                    items = list(value)
                else:
                    items = [value]
                value = [item for item in items if item]
            collected[name] = value
        return collected


NEWS = ResourceConfig(
    name="news",
    fields=("title", "content"),
    created_message="News added successfully!",
    deleted_message="News entry deleted successfully",
    not_found_message="News entry not found",
    track_updates=True,
)

TRIPS = ResourceConfig(
    name="trips",
    fields=("destination", "date", "description"),
    created_message="Trip added successfully!",
    deleted_message="Trip deleted successfully",
    not_found_message="Trip not found",
    validate_images=True,
)

STUDENTS = ResourceConfig(
    name="students",
    fields=("name", "grade", "achievements"),
    created_message="Student added successfully",
    deleted_message="Student deleted successfully",
    not_found_message="Student not found",
    list_fields=frozenset({"achievements"}),
    track_updates=True,
    validate_images=True,
)

RADIO = ResourceConfig(
    name="radio",
    fields=("title", "description"),
    created_message="Radio entry added successfully!",
    deleted_message="Radio entry deleted successfully",
    not_found_message="Radio entry not found",
)

RESOURCES: dict[str, ResourceConfig] = {
    config.name: config for config in (NEWS, TRIPS, STUDENTS, RADIO)
}
