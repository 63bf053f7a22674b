"""Assessment domain and request/response schemas."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Answer(str, Enum):
    """Answer to a checklist question. Unanswered is None."""

    YES = "yes"
    NO = "no"
    NOT_APPLICABLE = "n/a"


class AssessmentStatus(str, Enum):
    """Lifecycle state derived from answers and the completion flag."""

    DRAFT = "draft"
    READY = "ready"
    COMPLETED = "completed"


class QuestionAnswer(BaseModel):
    """One checklist item within an assessment."""

    id: str
    assessment_id: str
    question_number: int = Field(ge=1)
    question_text: str
    answer: Answer | None = None
    comment: str | None = None
    images: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_answered(self) -> bool:
        return self.answer is not None


class Assessment(BaseModel):
    """An inspection with its questions ordered by question_number."""

    id: str
    user_id: str
    store_name: str
    date: date
    completed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    questions: list[QuestionAnswer] = Field(default_factory=list)

    @property
    def unanswered_count(self) -> int:
        return sum(1 for q in self.questions if not q.is_answered)

    @property
    def is_ready(self) -> bool:
        return self.unanswered_count == 0

    @property
    def status(self) -> AssessmentStatus:
        if self.completed:
            return AssessmentStatus.COMPLETED
        if self.is_ready:
            return AssessmentStatus.READY
        return AssessmentStatus.DRAFT

    def question(self, question_id: str) -> QuestionAnswer | None:
        """Return the question with this id, if it belongs to the assessment."""
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


class AssessmentResult(BaseModel):
    """Compliance score computed on demand - never persisted."""

    total_questions: int = 0
    applicable_questions: int = 0
    yes_answers: int = 0
    percentage: int = 0


class ImageRow(BaseModel):
    """question_images row as returned by the store."""

    question_id: str
    image_url: str
    created_at: datetime | None = None


# --- HTTP payloads ---


class CreateAssessmentRequest(BaseModel):
    """POST /v1/assessments request."""

    store_name: str


class UpdateAnswerRequest(BaseModel):
    """PUT /v1/assessments/{id}/questions/{question_id} request."""

    answer: Answer | None = None
    comment: str | None = None
    images: list[str] = Field(default_factory=list)

    @field_validator("images")
    @classmethod
    def no_blank_images(cls, v: list[str]) -> list[str]:
        if any(not url.strip() for url in v):
            raise ValueError("image references must be non-empty")
        return v


class AssessmentResponse(BaseModel):
    """Assessment plus its derived lifecycle state."""

    id: str
    user_id: str
    store_name: str
    date: date
    completed: bool
    status: AssessmentStatus
    unanswered_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    questions: list[QuestionAnswer] = Field(default_factory=list)

    @classmethod
    def from_assessment(cls, assessment: Assessment) -> "AssessmentResponse":
        return cls(
            **assessment.model_dump(),
            status=assessment.status,
            unanswered_count=assessment.unanswered_count,
        )


class Finding(BaseModel):
    """A question answered No."""

    question_id: str
    question_number: int
    question_text: str
    comment: str | None = None
    images: list[str] = Field(default_factory=list)


class ResultResponse(BaseModel):
    """GET /v1/assessments/{id}/result response."""

    assessment_id: str
    store_name: str
    completed: bool
    result: AssessmentResult
    band: str
    findings: list[Finding] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """POST /v1/assessments/{id}/questions/{question_id}/images response."""

    image_url: str
