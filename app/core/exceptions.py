from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


# --- Lookup / access ---

class ReviewNotFoundError(AppException):
    def __init__(self, message: str = "Review not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="REVIEW_NOT_FOUND"
        )

class UnauthorizedReviewAccessError(AppException):
    """Raised when the acting user has no reporting relationship with the target."""
    def __init__(self, message: str = "You can only access reviews of your direct reports"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="UNAUTHORIZED_REVIEW_ACCESS"
        )

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )


# --- Lifecycle ---

class AlreadySubmittedError(AppException):
    def __init__(self, message: str = "Review has already been submitted"):
        super().__init__(
            message=message,
            status_code=409,
            error_code="ALREADY_SUBMITTED"
        )

class SelfReviewAlreadySubmittedError(AlreadySubmittedError):
    def __init__(self, message: str = "Self-review has already been submitted"):
        super().__init__(message)

class ManagerEvaluationAlreadySubmittedError(AlreadySubmittedError):
    def __init__(self, message: str = "Manager evaluation has already been submitted"):
        super().__init__(message)

class PeerFeedbackAlreadySubmittedError(AlreadySubmittedError):
    def __init__(self, message: str = "Peer feedback already submitted for this reviewee"):
        super().__init__(message)

class DeadlinePassedError(AppException):
    def __init__(self, phase: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"The {phase} deadline has passed",
            status_code=400,
            error_code="DEADLINE_PASSED",
            details={"phase": phase}
        )

class IncompleteSubmissionError(AppException):
    def __init__(self, message: str = "Cannot submit an incomplete review"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INCOMPLETE_SUBMISSION"
        )

class InvalidStateTransitionError(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_STATE_TRANSITION"
        )

class FinalScoreLockedError(AppException):
    def __init__(self, message: str = "Final score is locked"):
        super().__init__(
            message=message,
            status_code=409,
            error_code="FINAL_SCORE_LOCKED"
        )

class NoPeerFeedbackError(AppException):
    def __init__(self, message: str = "No peer feedback available to aggregate"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="NO_PEER_FEEDBACK"
        )


# --- Value validation ---

class ReviewValidationError(AppException):
    def __init__(self, message: str, error_code: str):
        super().__init__(
            message=message,
            status_code=422,
            error_code=error_code
        )

class InvalidPillarScoreError(ReviewValidationError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_PILLAR_SCORE")

class InvalidWeightedScoreError(ReviewValidationError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_WEIGHTED_SCORE")

class NarrativeExceedsWordLimitError(ReviewValidationError):
    def __init__(self, word_count: int, limit: int = 1000):
        super().__init__(
            f"Narrative exceeds {limit} word limit ({word_count} words)",
            "NARRATIVE_TOO_LONG"
        )
        self.word_count = word_count

class InvalidEngineerLevelError(ReviewValidationError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_ENGINEER_LEVEL")

class InvalidCycleDeadlinesError(ReviewValidationError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_CYCLE_DEADLINES")

class InvalidIdentifierError(ReviewValidationError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_IDENTIFIER")

class InvalidJustificationError(ReviewValidationError):
    def __init__(self, message: str):
        super().__init__(message, "INVALID_JUSTIFICATION")
