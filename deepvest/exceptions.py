"""Custom exception hierarchy for DeepVest."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Not-found errors
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    TEAM_MEMBER_NOT_FOUND = "TEAM_MEMBER_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Project lifecycle
    PROJECT_ARCHIVED = "PROJECT_ARCHIVED"
    NOTHING_TO_PUBLISH = "NOTHING_TO_PUBLISH"
    SNAPSHOT_LOCKED = "SNAPSHOT_LOCKED"
    SLUG_TAKEN = "SLUG_TAKEN"
    LAST_OWNER = "LAST_OWNER"
    SCORING_EXISTS = "SCORING_EXISTS"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Generic conflicts (duplicate team email, etc.)
    CONFLICT = "CONFLICT"

    # Generative-AI upstream
    AI_NOT_CONFIGURED = "AI_NOT_CONFIGURED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    MALFORMED_UPSTREAM_RESPONSE = "MALFORMED_UPSTREAM_RESPONSE"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DeepVestError(Exception):
    """
    Base exception for all DeepVest errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ProjectNotFoundError(DeepVestError):
    """Project not found by id or slug."""

    def __init__(self, project_ref: str):
        super().__init__(
            f"Project not found: {project_ref}",
            ErrorCode.PROJECT_NOT_FOUND,
            status_code=404,
            details={"project": project_ref}
        )


class ProjectPrivateError(ProjectNotFoundError):
    """Project exists but is private and the caller holds no role on it.

    Kept as its own class so services and logs can tell the two cases
    apart. The HTTP body is identical to ProjectNotFoundError so that
    callers cannot test for the existence of private projects.
    """


class ProjectArchivedError(DeepVestError):
    """Project was archived by its owner."""

    def __init__(self, project_ref: str):
        super().__init__(
            f"Project has been archived: {project_ref}",
            ErrorCode.PROJECT_ARCHIVED,
            status_code=410,
            details={"project": project_ref}
        )


class SnapshotNotFoundError(DeepVestError):
    """Snapshot not found (or belongs to another project)."""

    def __init__(self, snapshot_id: str):
        super().__init__(
            f"Snapshot not found: {snapshot_id}",
            ErrorCode.SNAPSHOT_NOT_FOUND,
            status_code=404,
            details={"snapshot_id": snapshot_id}
        )


class DocumentNotFoundError(DeepVestError):
    """Document not found, soft-deleted, or hidden from the caller."""

    def __init__(self, doc_id: str):
        super().__init__(
            f"Document not found: {doc_id}",
            ErrorCode.DOCUMENT_NOT_FOUND,
            status_code=404,
            details={"doc_id": doc_id}
        )


class TeamMemberNotFoundError(DeepVestError):
    """Team member not found or soft-deleted."""

    def __init__(self, member_id: str):
        super().__init__(
            f"Team member not found: {member_id}",
            ErrorCode.TEAM_MEMBER_NOT_FOUND,
            status_code=404,
            details={"member_id": member_id}
        )


class UserNotFoundError(DeepVestError):
    """No account matches the given id or email."""

    def __init__(self, user_ref: str):
        super().__init__(
            f"User not found: {user_ref}",
            ErrorCode.USER_NOT_FOUND,
            status_code=404,
            details={"user": user_ref}
        )


class ValidationError(DeepVestError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(DeepVestError):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(DeepVestError):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(DeepVestError):
    """Request conflicts with the current state of a resource."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message,
            error_code,
            status_code=409,
            details=details,
        )


class SlugTakenError(ConflictError):
    """Slug already used in its scope (global for projects, per-project for documents)."""

    def __init__(self, slug: str, scope: str = "project"):
        super().__init__(
            f"Slug is already taken: {slug}",
            ErrorCode.SLUG_TAKEN,
            details={"slug": slug, "scope": scope},
        )


class NothingToPublishError(ConflictError):
    """Publish requested while the project has no pending draft."""

    def __init__(self, project_id: str):
        super().__init__(
            "No draft to publish",
            ErrorCode.NOTHING_TO_PUBLISH,
            details={"project_id": project_id},
        )


class SnapshotLockedError(ConflictError):
    """Field update attempted on a published (locked) snapshot."""

    def __init__(self, snapshot_id: str):
        super().__init__(
            f"Snapshot is locked: {snapshot_id}",
            ErrorCode.SNAPSHOT_LOCKED,
            details={"snapshot_id": snapshot_id},
        )


class LastOwnerError(ConflictError):
    """Removing or demoting this permission would leave the project without an owner."""

    def __init__(self, project_id: str):
        super().__init__(
            "A project must keep at least one owner",
            ErrorCode.LAST_OWNER,
            details={"project_id": project_id},
        )


class ScoringExistsError(ConflictError):
    """The snapshot already has a scoring and regeneration was not forced."""

    def __init__(self, snapshot_id: str):
        super().__init__(
            "Scoring already exists for this snapshot. Use force=true to regenerate.",
            ErrorCode.SCORING_EXISTS,
            details={"snapshot_id": snapshot_id},
        )


class UpstreamError(DeepVestError):
    """External AI service failure."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UPSTREAM_ERROR,
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, status_code=status_code, details=details)


class AINotConfiguredError(UpstreamError):
    """No model or API key configured for the AI service."""

    def __init__(self):
        super().__init__(
            "AI service is not configured. Set AI_MODEL and AI_API_KEY.",
            ErrorCode.AI_NOT_CONFIGURED,
            status_code=503,
        )


class UpstreamTimeoutError(UpstreamError):
    """The AI service (or the file download feeding it) did not answer in time."""

    def __init__(self, message: str = "AI service timed out", timeout_seconds: Optional[float] = None):
        details = {"timeout_seconds": timeout_seconds} if timeout_seconds is not None else {}
        super().__init__(
            message,
            ErrorCode.UPSTREAM_TIMEOUT,
            status_code=504,
            details=details,
        )


class MalformedUpstreamResponseError(UpstreamError):
    """The AI service answered, but not with the shape we asked for."""

    def __init__(self, message: str = "AI service returned a malformed response"):
        super().__init__(
            message,
            ErrorCode.MALFORMED_UPSTREAM_RESPONSE,
            status_code=502,
        )


class DatabaseError(DeepVestError):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
