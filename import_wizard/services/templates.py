from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import UTC, datetime

from ..models.mapping import ColumnMapping
from ..models.template import TransformationTemplate

"""In-memory store of reusable transformation templates.

Applying a template is a selective merge keyed by target field: the current
mapping keeps its ``source_index`` and takes the template's ``transformation``
and ``additional_sources``. Fields absent from the template are untouched.
"""

__all__ = [
    "TemplateError",
    "TemplateStore",
]

logger = logging.getLogger(__name__)


class TemplateError(Exception):
    pass


class TemplateStore:
    def __init__(self, templates: Iterable[TransformationTemplate] = ()) -> None:
        self._templates: tuple[TransformationTemplate, ...] = tuple(templates)

    @property
    def templates(self) -> tuple[TransformationTemplate, ...]:
        return self._templates

    def get(self, template_id: str) -> TransformationTemplate | None:
        for t in self._templates:
            if t.id == template_id:
                return t
        return None

    def save(
        self,
        name: str,
        description: str,
        mappings: Sequence[ColumnMapping],
    ) -> TransformationTemplate:
        """Snapshot the given mappings under a new template id.

        Raises:
            TemplateError: If the name is blank
        """
        if not name.strip():
            raise TemplateError("template name must not be blank")
        template_id = f"template-{time.time_ns() // 1_000_000}"
        while self.get(template_id) is not None:
            template_id += "-1"
        template = TransformationTemplate(
            id=template_id,
            name=name,
            description=description,
            date_created=datetime.now(UTC).date().isoformat(),
            mappings=tuple(mappings),
        )
        self._templates = (*self._templates, template)
        logger.info(f"template saved: {template.id} ({name})")
        return template

    def delete(self, template_id: str) -> None:
        self._templates = tuple(t for t in self._templates if t.id != template_id)

    def apply(
        self,
        template_id: str,
        mappings: Sequence[ColumnMapping],
    ) -> tuple[ColumnMapping, ...]:
        """Merge a template's transformations / additional sources into ``mappings``.

        An unknown template id leaves the mappings unchanged.
        """
        template = self.get(template_id)
        if template is None:
            logger.debug(f"template apply skipped: unknown id '{template_id}'")
            return tuple(mappings)
        by_field = {m.target_field: m for m in template.mappings}
        merged: list[ColumnMapping] = []
        for current in mappings:
            tm = by_field.get(current.target_field)
            if tm is None:
                merged.append(current)
                continue
            merged.append(
                replace(
                    current,
                    transformation=tm.transformation,
                    additional_sources=tuple(
                        s for s in tm.additional_sources if s.source_index != current.source_index
                    ),
                )
            )
        return tuple(merged)
