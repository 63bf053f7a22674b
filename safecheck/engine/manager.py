"""Assessment aggregate manager - the only writer of assessment state."""

import logging
from collections.abc import Callable
from datetime import date
from uuid import UUID

from pydantic import ValidationError

from safecheck.engine.evidence import evidence_path, guess_content_type, validate_image
from safecheck.engine.template import DEFAULT_TEMPLATE, QuestionTemplate
from safecheck.errors import (
    NotAuthenticated,
    NotAuthorized,
    NotFound,
    PartialWriteFailure,
    QuestionsRemaining,
    StorageFailure,
    UploadFailed,
    ValidationFailed,
)
from safecheck.schemas.assessment import Answer, Assessment, ImageRow, QuestionAnswer

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


def _require_owner(owner_id: str | None) -> str:
    if not owner_id or not str(owner_id).strip():
        raise NotAuthenticated()
    return str(owner_id).strip()


def _parse_id(value, message: str) -> str:
    """Canonical UUID string; anything else cannot name a stored row."""
    try:
        return str(UUID(str(value)))
    except ValueError as e:
        raise NotFound(message) from e


def _coerce_answer(answer) -> Answer | None:
    if answer is None or isinstance(answer, Answer):
        return answer
    try:
        return Answer(answer)
    except ValueError as e:
        raise ValidationFailed(
            f"Invalid answer: {answer!r}. Allowed: yes, no, n/a or none"
        ) from e


def _normalize_comment(comment: str | None) -> str | None:
    if comment is None:
        return None
    comment = comment.strip()
    return comment or None


class AssessmentManager:
    """
    Creates, loads and mutates assessments on behalf of an owner.

    store and objects are injected so the manager can run against the SQL
    store and Supabase in production and against in-memory fakes in tests.
    Assessments touched through this manager are kept in an in-memory cache
    that is only updated after the store confirms a write.
    """

    def __init__(
        self,
        store,
        objects,
        template: QuestionTemplate = DEFAULT_TEMPLATE,
        storage_prefix: str = "question_images",
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.objects = objects
        self.template = template
        self.storage_prefix = storage_prefix
        self.max_image_bytes = max_image_bytes
        self.today = today
        self._cache: dict[str, Assessment] = {}
        # Bumped on every confirmed write; lets late loads detect they are stale
        self._revisions: dict[str, int] = {}

    def cached(self, assessment_id: str) -> Assessment | None:
        """Last confirmed in-memory state of an assessment, if any."""
        return self._cache.get(assessment_id)

    # --- hydration ---

    def _hydrate(
        self, row: dict, question_rows: list[dict], image_rows: list[dict]
    ) -> Assessment:
        """Validate raw store payloads and build the aggregate."""
        try:
            images: dict[str, list[str]] = {}
            for img in (ImageRow.model_validate(r) for r in image_rows):
                images.setdefault(img.question_id, []).append(img.image_url)
            questions = [
                QuestionAnswer.model_validate(
                    {**q, "images": images.get(str(q.get("id")), [])}
                )
                for q in question_rows
            ]
            questions.sort(key=lambda q: q.question_number)
            return Assessment.model_validate({**row, "questions": questions})
        except (ValidationError, TypeError, AttributeError) as e:
            logger.error("Malformed assessment payload from store: %s", e)
            raise StorageFailure("Store returned a malformed assessment") from e

    def _question_from_row(self, row: dict, images: list[str]) -> QuestionAnswer:
        try:
            return QuestionAnswer.model_validate({**row, "images": images})
        except (ValidationError, TypeError) as e:
            logger.error("Malformed question payload from store: %s", e)
            raise StorageFailure("Store returned a malformed question") from e

    async def _fetch_owned(self, assessment_id: str, owner_id: str) -> dict:
        row = await self.store.get_assessment(assessment_id)
        if row is None:
            raise NotFound()
        if not isinstance(row, dict) or "user_id" not in row:
            raise StorageFailure("Store returned a malformed assessment")
        if str(row["user_id"]) != owner_id:
            logger.warning(
                "Owner %s denied access to assessment %s", owner_id, assessment_id
            )
            raise NotAuthorized()
        return row

    async def _fetch_full(self, row: dict) -> Assessment:
        question_rows = await self.store.list_questions(str(row["id"]))
        question_ids = [str(q.get("id")) for q in question_rows]
        image_rows = await self.store.list_images(question_ids)
        return self._hydrate(row, question_rows, image_rows)

    async def _fetch_question(self, assessment_id: str, question_id: str) -> dict:
        """Question row, checked to belong to assessment_id."""
        row = await self.store.get_question(question_id)
        if row is None:
            raise NotFound("Question not found")
        if str(row.get("assessment_id")) != assessment_id:
            raise ValidationFailed("Question does not belong to this assessment")
        return row

    def _remember(self, assessment: Assessment) -> None:
        self._cache[assessment.id] = assessment
        self._revisions[assessment.id] = self._revisions.get(assessment.id, 0) + 1

    def _remember_question(self, question: QuestionAnswer) -> None:
        cached = self._cache.get(question.assessment_id)
        if cached is not None:
            questions = [question if q.id == question.id else q for q in cached.questions]
            cached = cached.model_copy(update={"questions": questions})
            self._cache[cached.id] = cached
        self._revisions[question.assessment_id] = (
            self._revisions.get(question.assessment_id, 0) + 1
        )

    def _remember_image(self, assessment_id: str, question_id: str, url: str) -> None:
        cached = self._cache.get(assessment_id)
        if cached is not None:
            questions = [
                q.model_copy(update={"images": [*q.images, url]}) if q.id == question_id else q
                for q in cached.questions
            ]
            self._cache[assessment_id] = cached.model_copy(update={"questions": questions})
        self._revisions[assessment_id] = self._revisions.get(assessment_id, 0) + 1

    # --- operations ---

    async def create(self, store_name: str, owner_id: str) -> Assessment:
        """Create an assessment with one unanswered question per template prompt."""
        owner_id = _require_owner(owner_id)
        store_name = (store_name or "").strip()
        if not store_name:
            raise ValidationFailed("Store name is required")

        prompts = self.template.numbered()
        row, question_rows = await self.store.insert_assessment(
            owner_id, store_name, self.today(), prompts
        )

        numbers = sorted(q.get("question_number") or 0 for q in question_rows)
        if numbers != [n for n, _ in prompts]:
            logger.error(
                "Assessment %s written with %d of %d questions, rolling back",
                row.get("id"),
                len(question_rows),
                len(prompts),
            )
            try:
                await self.store.delete_assessment(str(row["id"]))
            except StorageFailure:
                logger.exception("Could not remove partial assessment %s", row.get("id"))
            raise PartialWriteFailure("Failed to add questions to assessment")

        assessment = self._hydrate(row, question_rows, [])
        self._remember(assessment)
        logger.info(
            "Created assessment %s for %r with %d questions",
            assessment.id,
            assessment.store_name,
            len(assessment.questions),
        )
        return assessment

    async def load(self, assessment_id: str, owner_id: str) -> Assessment:
        """Load one of the owner's assessments with questions and images."""
        owner_id = _require_owner(owner_id)
        assessment_id = _parse_id(assessment_id, NotFound().message)
        revision = self._revisions.get(assessment_id, 0)
        row = await self._fetch_owned(assessment_id, owner_id)
        assessment = await self._fetch_full(row)

        if self._revisions.get(assessment_id, 0) != revision:
            # A write landed while this load was in flight
            logger.debug("Discarding stale load of assessment %s", assessment_id)
            return self._cache.get(assessment_id, assessment)
        self._cache[assessment_id] = assessment
        return assessment

    async def list_for_owner(self, owner_id: str) -> list[Assessment]:
        """All of the owner's assessments, newest first."""
        owner_id = _require_owner(owner_id)
        revisions = dict(self._revisions)
        rows = await self.store.list_assessments(owner_id)
        assessments = []
        for row in rows:
            if str(row.get("user_id")) != owner_id:
                raise StorageFailure("Store returned another owner's assessment")
            assessment = await self._fetch_full(row)
            if self._revisions.get(assessment.id, 0) != revisions.get(assessment.id, 0):
                assessment = self._cache.get(assessment.id, assessment)
            else:
                self._cache[assessment.id] = assessment
            assessments.append(assessment)
        return assessments

    async def update_answer(
        self,
        assessment_id: str,
        question_id: str,
        answer: Answer | str | None,
        comment: str | None,
        images: list[str],
        owner_id: str,
    ) -> QuestionAnswer:
        """Replace the answer, comment and image list of one question."""
        owner_id = _require_owner(owner_id)
        assessment_id = _parse_id(assessment_id, NotFound().message)
        question_id = _parse_id(question_id, "Question not found")
        answer = _coerce_answer(answer)
        comment = _normalize_comment(comment)
        images = list(images or [])
        if any(not isinstance(url, str) or not url.strip() for url in images):
            raise ValidationFailed("Image references must be non-empty strings")

        row = await self._fetch_owned(assessment_id, owner_id)
        await self._fetch_question(assessment_id, question_id)
        if row.get("completed") and answer is None:
            raise ValidationFailed("Cannot clear an answer on a completed assessment")

        return await self._write_question(question_id, answer, comment, images)

    async def _write_question(
        self,
        question_id: str,
        answer: Answer | None,
        comment: str | None,
        images: list[str],
    ) -> QuestionAnswer:
        saved = await self.store.update_question(
            question_id, answer.value if answer else None, comment, images
        )
        question = self._question_from_row(saved, images)
        self._remember_question(question)
        return question

    async def complete(self, assessment_id: str, owner_id: str) -> Assessment:
        """Mark an assessment complete once every question is answered."""
        owner_id = _require_owner(owner_id)
        assessment_id = _parse_id(assessment_id, NotFound().message)
        row = await self._fetch_owned(assessment_id, owner_id)
        assessment = await self._fetch_full(row)
        if assessment.completed:
            self._cache[assessment.id] = assessment
            return assessment

        remaining = assessment.unanswered_count
        if remaining:
            raise QuestionsRemaining(remaining)

        saved = await self.store.mark_completed(assessment_id)
        assessment = assessment.model_copy(
            update={"completed": True, "updated_at": saved.get("updated_at")}
        )
        self._remember(assessment)
        logger.info("Completed assessment %s", assessment_id)
        return assessment

    async def upload_evidence(
        self,
        question_id: str,
        image_bytes: bytes,
        owner_id: str,
        assessment_id: str,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        """Store an evidence photo and append its URL to the question's images."""
        owner_id = _require_owner(owner_id)
        assessment_id = _parse_id(assessment_id, NotFound().message)
        question_id = _parse_id(question_id, "Question not found")
        await self._fetch_owned(assessment_id, owner_id)
        await self._fetch_question(assessment_id, question_id)

        content_type = guess_content_type(filename, content_type)
        ext = validate_image(image_bytes, content_type, self.max_image_bytes)
        path = evidence_path(self.storage_prefix, owner_id, assessment_id, question_id, ext)
        try:
            url = await self.objects.upload(path, image_bytes, content_type)
        except StorageFailure as e:
            raise UploadFailed("Upload failed") from e

        # Append only: answer and comment are left as the store has them now
        try:
            ImageRow.model_validate(await self.store.add_image(question_id, url))
        except (StorageFailure, ValidationError) as e:
            try:
                await self.objects.remove(path)
            except StorageFailure:
                logger.exception("Could not remove orphaned evidence object %s", path)
            raise UploadFailed("Upload failed") from e

        self._remember_image(assessment_id, question_id, url)
        logger.info("Stored evidence for question %s at %s", question_id, path)
        return url
