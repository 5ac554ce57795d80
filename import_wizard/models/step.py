from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

"""Wizard step state.

The current step is the only stored value; per-step display flags are
derived from it on demand.

State transitions: UPLOAD → SELECT_HEADER → MATCH_COLUMNS → VALIDATE (strictly linear)
"""

__all__ = [
    "StepView",
    "WizardStep",
    "derive_steps",
]


class WizardStep(IntEnum):
    UPLOAD = 1
    SELECT_HEADER = 2
    MATCH_COLUMNS = 3
    VALIDATE = 4

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    WizardStep.UPLOAD: "Upload file",
    WizardStep.SELECT_HEADER: "Select header row",
    WizardStep.MATCH_COLUMNS: "Match Columns",
    WizardStep.VALIDATE: "Validate data",
}


@dataclass(frozen=True)
class StepView:
    number: int
    label: str
    is_active: bool
    is_completed: bool


def derive_steps(current: WizardStep) -> list[StepView]:
    return [
        StepView(
            number=int(step),
            label=step.label,
            is_active=step == current,
            is_completed=step < current,
        )
        for step in WizardStep
    ]
