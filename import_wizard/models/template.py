from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .mapping import ColumnMapping, TransformationType

"""TransformationTemplate model.

A template is a named snapshot of a full mapping list. Only the
``transformation`` and ``additional_sources`` of each mapping are re-applied
later (keyed by target field); the snapshot's ``source_index`` values are kept
for reference only.
"""

__all__ = [
    "TransformationTemplate",
]


@dataclass(frozen=True)
class TransformationTemplate:
    id: str
    name: str
    description: str
    date_created: str  # YYYY-MM-DD
    mappings: tuple[ColumnMapping, ...]

    @property
    def active_transformations(self) -> int:
        return sum(1 for m in self.mappings if m.transformation.type is not TransformationType.NONE)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> TransformationTemplate:
        return TransformationTemplate(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            date_created=str(data.get("date_created", "")),
            mappings=tuple(ColumnMapping.from_dict(m) for m in data.get("mappings") or []),
        )
