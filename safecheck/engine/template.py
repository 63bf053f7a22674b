"""Question templates used to seed new assessments."""

import json
from pathlib import Path

SAFETY_CHECKLIST = (
    "Are all fire extinguishers properly maintained and accessible?",
    "Is the emergency evacuation plan clearly displayed?",
    "Are all emergency exits properly marked and unobstructed?",
    "Is proper PPE available and used where required?",
    "Are all hazardous materials properly labeled and stored?",
    "Is the first aid kit fully stocked and easily accessible?",
    "Are all electrical panels and equipment in good condition?",
    "Are all walkways and work areas free of slip, trip, and fall hazards?",
    "Is the lighting adequate in all work areas?",
    "Are all employees trained in safety procedures?",
    "Are safety data sheets (SDS) available for all chemicals?",
    "Is proper lifting technique being followed for manual handling?",
    "Are all tools and machinery properly maintained?",
    "Is there adequate ventilation in work areas?",
    "Are noise levels controlled where necessary?",
    "Are COVID-19 safety measures being followed?",
    "Are all safety signs visible and in good condition?",
    "Are regular safety meetings conducted?",
    "Is there a process for reporting safety concerns?",
    "Are safety inspections conducted regularly?",
)


class QuestionTemplate:
    """Ordered, immutable sequence of question prompts."""

    def __init__(self, prompts):
        prompts = tuple(p.strip() if isinstance(p, str) else p for p in prompts)
        if not prompts:
            raise ValueError("Question template must contain at least one prompt")
        for i, p in enumerate(prompts, start=1):
            if not isinstance(p, str) or not p:
                raise ValueError(f"Question {i} in template must be a non-empty string")
        self._prompts = prompts

    def __len__(self) -> int:
        return len(self._prompts)

    def __iter__(self):
        return iter(self._prompts)

    def numbered(self) -> list[tuple[int, str]]:
        """(question_number, prompt) pairs, numbered from 1."""
        return list(enumerate(self._prompts, start=1))

    @classmethod
    def from_file(cls, path: str | Path) -> "QuestionTemplate":
        """Load a template from a JSON file holding a list of prompt strings."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON list of prompts")
        return cls(data)


DEFAULT_TEMPLATE = QuestionTemplate(SAFETY_CHECKLIST)


def load_template(path: str | None = None) -> QuestionTemplate:
    """Template from path if given, else the built-in safety checklist."""
    if path:
        return QuestionTemplate.from_file(path)
    return DEFAULT_TEMPLATE
