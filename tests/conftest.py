"""Shared fixtures: in-memory store and object storage fakes."""

import asyncio
import copy
import io
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from PIL import Image

from safecheck.engine.manager import AssessmentManager
from safecheck.engine.template import QuestionTemplate
from safecheck.errors import StorageFailure

OWNER = "11111111-1111-1111-1111-111111111111"
OTHER_OWNER = "22222222-2222-2222-2222-222222222222"
TODAY = date(2026, 10, 18)

THREE_QUESTIONS = QuestionTemplate(
    [
        "Are fire exits clear?",
        "Is the first aid kit stocked?",
        "Is the forklift charging area ventilated?",
    ]
)


class FakeStore:
    """In-memory stand-in for SqlAssessmentStore with failure injection."""

    def __init__(self):
        self.assessments: dict[str, dict] = {}
        self.questions: dict[str, dict] = {}
        self.images: list[dict] = []
        self.fail_on: set[str] = set()
        self.short_batch = False
        self.gate: asyncio.Event | None = None
        self.writes: list[str] = []
        self._clock = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _check(self, op: str) -> None:
        if op in self.fail_on:
            raise StorageFailure(f"{op} failed")

    async def insert_assessment(self, user_id, store_name, on_date, prompts):
        self._check("insert_assessment")
        now = self._tick()
        row = {
            "id": str(uuid4()),
            "user_id": user_id,
            "store_name": store_name,
            "date": on_date,
            "completed": False,
            "created_at": now,
            "updated_at": now,
        }
        questions = [
            {
                "id": str(uuid4()),
                "assessment_id": row["id"],
                "question_number": number,
                "question_text": text,
                "answer": None,
                "comment": None,
                "created_at": now,
                "updated_at": now,
            }
            for number, text in prompts
        ]
        # Both writes share one transaction: nothing is kept on failure
        self._check("insert_questions")
        if self.short_batch:
            questions = questions[:-1]
        self.assessments[row["id"]] = row
        for q in questions:
            self.questions[q["id"]] = q
        self.writes.append("insert_assessment")
        return copy.deepcopy(row), copy.deepcopy(questions)

    async def delete_assessment(self, assessment_id):
        self._check("delete_assessment")
        self.writes.append("delete_assessment")
        self.assessments.pop(assessment_id, None)
        doomed = {qid for qid, q in self.questions.items() if q["assessment_id"] == assessment_id}
        for qid in doomed:
            del self.questions[qid]
        self.images = [img for img in self.images if img["question_id"] not in doomed]

    async def get_assessment(self, assessment_id):
        self._check("get_assessment")
        row = self.assessments.get(assessment_id)
        return copy.deepcopy(row) if row else None

    async def list_assessments(self, user_id):
        self._check("list_assessments")
        rows = [a for a in self.assessments.values() if a["user_id"] == user_id]
        rows.sort(key=lambda a: a["created_at"], reverse=True)
        return copy.deepcopy(rows)

    async def list_questions(self, assessment_id):
        self._check("list_questions")
        rows = sorted(
            (q for q in self.questions.values() if q["assessment_id"] == assessment_id),
            key=lambda q: q["question_number"],
        )
        rows = copy.deepcopy(rows)
        if self.gate is not None:
            await self.gate.wait()
        return rows

    async def get_question(self, question_id):
        self._check("get_question")
        row = self.questions.get(question_id)
        return copy.deepcopy(row) if row else None

    async def list_images(self, question_ids):
        self._check("list_images")
        rows = [img for img in self.images if img["question_id"] in question_ids]
        rows.sort(key=lambda img: img["created_at"])
        return copy.deepcopy(rows)

    async def update_question(self, question_id, answer, comment, images):
        self._check("update_question")
        now = self._tick()
        q = self.questions[question_id]
        q.update(answer=answer, comment=comment, updated_at=now)
        self.images = [img for img in self.images if img["question_id"] != question_id]
        for i, url in enumerate(images):
            self.images.append(
                {
                    "question_id": question_id,
                    "image_url": url,
                    "created_at": now + timedelta(microseconds=i),
                }
            )
        self.writes.append("update_question")
        return copy.deepcopy(q)

    async def add_image(self, question_id, image_url):
        self._check("add_image")
        row = {"question_id": question_id, "image_url": image_url, "created_at": self._tick()}
        self.images.append(row)
        self.writes.append("add_image")
        return copy.deepcopy(row)

    async def mark_completed(self, assessment_id):
        self._check("mark_completed")
        row = self.assessments[assessment_id]
        row.update(completed=True, updated_at=self._tick())
        self.writes.append("mark_completed")
        return copy.deepcopy(row)


class FakeObjectStorage:
    """In-memory bucket handing out predictable public URLs."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.fail_upload = False
        self.fail_remove = False
        self.gate: asyncio.Event | None = None

    async def upload(self, path, content, content_type):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_upload:
            raise StorageFailure(f"Failed to upload {path}")
        self.objects[path] = content
        return f"https://storage.example.test/safety-assessments/{path}"

    async def remove(self, path):
        if self.fail_remove:
            raise StorageFailure(f"Failed to remove {path}")
        self.objects.pop(path, None)


def png_bytes(color=(200, 30, 30)) -> bytes:
    """A tiny valid PNG."""
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def objects():
    return FakeObjectStorage()


@pytest.fixture
def manager(store, objects):
    return AssessmentManager(
        store=store,
        objects=objects,
        template=THREE_QUESTIONS,
        today=lambda: TODAY,
    )
