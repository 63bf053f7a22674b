"""SQL store for assessments, questions and evidence image references."""

import logging
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safecheck.errors import StorageFailure
from safecheck.models import Assessment, AssessmentQuestion, QuestionImage

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _assessment_row(a: Assessment) -> dict:
    return {
        "id": str(a.id),
        "user_id": str(a.user_id),
        "store_name": a.store_name,
        "date": a.date,
        "completed": a.completed,
        "created_at": a.created_at,
        "updated_at": a.updated_at,
    }


def _question_row(q: AssessmentQuestion) -> dict:
    return {
        "id": str(q.id),
        "assessment_id": str(q.assessment_id),
        "question_number": q.question_number,
        "question_text": q.question_text,
        "answer": q.answer,
        "comment": q.comment,
        "created_at": q.created_at,
        "updated_at": q.updated_at,
    }


def _image_rows(question_id: str, urls: list[str], start: datetime) -> list[QuestionImage]:
    # Strictly increasing created_at keeps the list order on read-back
    return [
        QuestionImage(
            id=str(uuid4()),
            question_id=question_id,
            image_url=url,
            created_at=start + timedelta(microseconds=i),
        )
        for i, url in enumerate(urls)
    ]


class SqlAssessmentStore:
    """
    Assessment persistence over one AsyncSession.

    Every write commits before returning, so a returned value means the
    change is durable. SQLAlchemy errors roll the session back and surface
    as StorageFailure.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise StorageFailure(f"Failed to {action}") from e

    async def insert_assessment(
        self,
        user_id: str,
        store_name: str,
        on_date: date,
        prompts: list[tuple[int, str]],
    ) -> tuple[dict, list[dict]]:
        """Insert an assessment and its question batch in one transaction."""
        now = _now()
        assessment = Assessment(
            id=str(uuid4()),
            user_id=user_id,
            store_name=store_name,
            date=on_date,
            completed=False,
            created_at=now,
            updated_at=now,
        )
        questions = [
            AssessmentQuestion(
                id=str(uuid4()),
                assessment_id=assessment.id,
                question_number=number,
                question_text=text,
                answer=None,
                comment=None,
                created_at=now,
                updated_at=now,
            )
            for number, text in prompts
        ]
        try:
            self.db.add(assessment)
            await self.db.flush()
            self.db.add_all(questions)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to create assessment: %s", e)
            raise StorageFailure("Failed to create assessment") from e
        await self._commit("create assessment")
        return _assessment_row(assessment), [_question_row(q) for q in questions]

    async def delete_assessment(self, assessment_id: str) -> None:
        """Remove an assessment; questions and images cascade."""
        try:
            await self.db.execute(delete(Assessment).where(Assessment.id == assessment_id))
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageFailure("Failed to delete assessment") from e
        await self._commit("delete assessment")

    async def get_assessment(self, assessment_id: str) -> dict | None:
        try:
            result = await self.db.execute(
                select(Assessment)
                .where(Assessment.id == assessment_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise StorageFailure("Failed to fetch assessment") from e
        row = result.scalar_one_or_none()
        return _assessment_row(row) if row else None

    async def list_assessments(self, user_id: str) -> list[dict]:
        """Assessments owned by user_id, newest first."""
        try:
            result = await self.db.execute(
                select(Assessment)
                .where(Assessment.user_id == user_id)
                .order_by(Assessment.created_at.desc())
            )
        except SQLAlchemyError as e:
            raise StorageFailure("Failed to fetch assessments") from e
        return [_assessment_row(a) for a in result.scalars().all()]

    async def list_questions(self, assessment_id: str) -> list[dict]:
        """Questions of an assessment ordered by question_number."""
        try:
            result = await self.db.execute(
                select(AssessmentQuestion)
                .where(AssessmentQuestion.assessment_id == assessment_id)
                .order_by(AssessmentQuestion.question_number.asc())
            )
        except SQLAlchemyError as e:
            raise StorageFailure("Failed to fetch questions") from e
        return [_question_row(q) for q in result.scalars().all()]

    async def get_question(self, question_id: str) -> dict | None:
        try:
            result = await self.db.execute(
                select(AssessmentQuestion)
                .where(AssessmentQuestion.id == question_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise StorageFailure("Failed to fetch question") from e
        row = result.scalar_one_or_none()
        return _question_row(row) if row else None

    async def list_images(self, question_ids: list[str]) -> list[dict]:
        """Image rows for the given questions, oldest first."""
        if not question_ids:
            return []
        try:
            result = await self.db.execute(
                select(QuestionImage)
                .where(QuestionImage.question_id.in_(question_ids))
                .order_by(QuestionImage.created_at.asc())
            )
        except SQLAlchemyError as e:
            raise StorageFailure("Failed to fetch images") from e
        return [
            {
                "question_id": str(img.question_id),
                "image_url": img.image_url,
                "created_at": img.created_at,
            }
            for img in result.scalars().all()
        ]

    async def update_question(
        self,
        question_id: str,
        answer: str | None,
        comment: str | None,
        images: list[str],
    ) -> dict:
        """Replace answer, comment and image list of one question atomically."""
        now = _now()
        try:
            await self.db.execute(
                update(AssessmentQuestion)
                .where(AssessmentQuestion.id == question_id)
                .values(answer=answer, comment=comment, updated_at=now)
            )
            await self.db.execute(
                delete(QuestionImage).where(QuestionImage.question_id == question_id)
            )
            self.db.add_all(_image_rows(question_id, images, now))
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to update question %s: %s", question_id, e)
            raise StorageFailure("Failed to save answer") from e
        await self._commit("save answer")
        row = await self.get_question(question_id)
        if row is None:
            raise StorageFailure("Question disappeared during update")
        return row

    async def add_image(self, question_id: str, image_url: str) -> dict:
        """Append one image reference to a question."""
        img = QuestionImage(
            id=str(uuid4()),
            question_id=question_id,
            image_url=image_url,
            created_at=_now(),
        )
        try:
            self.db.add(img)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to record image for question %s: %s", question_id, e)
            raise StorageFailure("Failed to record image") from e
        await self._commit("record image")
        return {
            "question_id": question_id,
            "image_url": image_url,
            "created_at": img.created_at,
        }

    async def mark_completed(self, assessment_id: str) -> dict:
        """Set completed=true; never cleared by this store."""
        try:
            await self.db.execute(
                update(Assessment)
                .where(Assessment.id == assessment_id)
                .values(completed=True, updated_at=_now())
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to complete assessment %s: %s", assessment_id, e)
            raise StorageFailure("Failed to complete assessment") from e
        await self._commit("complete assessment")
        row = await self.get_assessment(assessment_id)
        if row is None:
            raise StorageFailure("Assessment disappeared during completion")
        return row
