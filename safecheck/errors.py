"""Assessment error taxonomy.

Every manager operation raises one of these instead of returning an empty
value, so the HTTP layer (or any other caller) can tell "log in again" from
"you still have N questions to answer" from "try again later".
"""


class AssessmentError(Exception):
    """Base class for assessment failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(AssessmentError):
    """No actor identity was supplied."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFound(AssessmentError):
    """Assessment or question does not exist."""

    def __init__(self, message: str = "Assessment not found"):
        super().__init__(message)


class NotAuthorized(NotFound):
    """Entity exists but belongs to another owner.

    Carries the same message as NotFound so callers cannot probe for other
    users' assessments.
    """


class ValidationFailed(AssessmentError):
    """Request is well-formed but violates an assessment rule."""


class QuestionsRemaining(ValidationFailed):
    """Completion attempted while questions are still unanswered."""

    def __init__(self, remaining: int):
        super().__init__(
            f"You have {remaining} unanswered question{'s' if remaining != 1 else ''}"
        )
        self.remaining = remaining


class StorageFailure(AssessmentError):
    """Persistence or object-storage call failed. Safe to retry manually."""


class PartialWriteFailure(StorageFailure):
    """Assessment was written without its full question batch and was rolled back."""


class UploadFailed(StorageFailure):
    """Evidence image could not be stored or recorded."""
