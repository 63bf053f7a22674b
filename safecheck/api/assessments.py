"""Assessment endpoints."""

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from safecheck.auth.middleware import OwnerDep
from safecheck.config import settings
from safecheck.database import get_db
from safecheck.engine.calculator import calculate, findings, score_band
from safecheck.engine.manager import AssessmentManager
from safecheck.engine.template import QuestionTemplate, load_template
from safecheck.schemas.assessment import (
    AssessmentResponse,
    CreateAssessmentRequest,
    Finding,
    QuestionAnswer,
    ResultResponse,
    UpdateAnswerRequest,
    UploadResponse,
)
from safecheck.storage.objects import ObjectStorage
from safecheck.storage.repositories import SqlAssessmentStore

router = APIRouter()


@lru_cache
def get_template() -> QuestionTemplate:
    """Question template, read once per process."""
    return load_template(settings.question_template_path)


@lru_cache
def get_object_storage() -> ObjectStorage:
    return ObjectStorage.from_settings()


async def get_manager(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AssessmentManager:
    """Manager bound to this request's database session."""
    return AssessmentManager(
        store=SqlAssessmentStore(db),
        objects=get_object_storage(),
        template=get_template(),
        storage_prefix=settings.storage_prefix,
        max_image_bytes=settings.max_image_bytes,
    )


ManagerDep = Annotated[AssessmentManager, Depends(get_manager)]


@router.post(
    "/assessments",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assessment(
    body: CreateAssessmentRequest,
    owner_id: OwnerDep,
    manager: ManagerDep,
):
    """Create an assessment seeded with the question template."""
    assessment = await manager.create(body.store_name, owner_id)
    return AssessmentResponse.from_assessment(assessment)


@router.get("/assessments", response_model=list[AssessmentResponse])
async def list_assessments(owner_id: OwnerDep, manager: ManagerDep):
    """List the caller's assessments, newest first."""
    assessments = await manager.list_for_owner(owner_id)
    return [AssessmentResponse.from_assessment(a) for a in assessments]


@router.get("/assessments/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(assessment_id: str, owner_id: OwnerDep, manager: ManagerDep):
    """Get one assessment with questions and evidence images."""
    assessment = await manager.load(assessment_id, owner_id)
    return AssessmentResponse.from_assessment(assessment)


@router.put(
    "/assessments/{assessment_id}/questions/{question_id}",
    response_model=QuestionAnswer,
)
async def update_answer(
    assessment_id: str,
    question_id: str,
    body: UpdateAnswerRequest,
    owner_id: OwnerDep,
    manager: ManagerDep,
):
    """Save the answer, comment and image list of one question."""
    return await manager.update_answer(
        assessment_id,
        question_id,
        body.answer,
        body.comment,
        body.images,
        owner_id,
    )


@router.post(
    "/assessments/{assessment_id}/complete",
    response_model=AssessmentResponse,
)
async def complete_assessment(
    assessment_id: str, owner_id: OwnerDep, manager: ManagerDep
):
    """
    Mark the assessment complete.
    Fails with 409 and the remaining count while questions are unanswered;
    repeating it on a completed assessment is a no-op.
    """
    assessment = await manager.complete(assessment_id, owner_id)
    return AssessmentResponse.from_assessment(assessment)


@router.post(
    "/assessments/{assessment_id}/questions/{question_id}/images",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_evidence(
    assessment_id: str,
    question_id: str,
    owner_id: OwnerDep,
    manager: ManagerDep,
    file: UploadFile = File(...),
):
    """Upload an evidence photo for a question."""
    content = await file.read()
    url = await manager.upload_evidence(
        question_id,
        content,
        owner_id,
        assessment_id,
        filename=file.filename,
        content_type=file.content_type,
    )
    return UploadResponse(image_url=url)


@router.get("/assessments/{assessment_id}/result", response_model=ResultResponse)
async def get_result(assessment_id: str, owner_id: OwnerDep, manager: ManagerDep):
    """Compliance score, band and failed items for an assessment."""
    assessment = await manager.load(assessment_id, owner_id)
    result = calculate(assessment)
    return ResultResponse(
        assessment_id=assessment.id,
        store_name=assessment.store_name,
        completed=assessment.completed,
        result=result,
        band=score_band(result.percentage),
        findings=[
            Finding(
                question_id=q.id,
                question_number=q.question_number,
                question_text=q.question_text,
                comment=q.comment,
                images=q.images,
            )
            for q in findings(assessment)
        ],
    )
