"""Domain error taxonomy shared by every feature package.

Services raise these; the global handler in ``lingala.main`` turns them
into JSON responses using ``ERROR_STATUS_MAP``.
"""

from fastapi import status


class LingalaError(Exception):
    """Base domain error."""

    retryable = False

    def __init__(self, message: str, code: str = "error"):
        self.message = message
        self.code = code
        super().__init__(message)


# ==============================================================================
# Client errors
# ==============================================================================


class AuthenticationRequiredError(LingalaError):
    """Caller must sign in to continue."""

    def __init__(self, message: str = "Sign in to watch this lesson"):
        super().__init__(message, "authentication_required")


class NotEnrolledError(LingalaError):
    """Authenticated caller has neither an enrollment nor a subscription."""

    def __init__(
        self,
        message: str = "Enroll in this course or subscribe to watch this lesson",
    ):
        super().__init__(message, "not_enrolled")


class PermissionDeniedError(LingalaError):
    def __init__(self, message: str = "Admin role required"):
        super().__init__(message, "permission_denied")


class InvalidInputError(LingalaError):
    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "invalid_input")


class LessonNotFoundError(LingalaError):
    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class CourseModuleNotFoundError(LingalaError):
    def __init__(self, message: str = "Module not found"):
        super().__init__(message, "module_not_found")


class CourseNotFoundError(LingalaError):
    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class InvalidLessonStructureError(LingalaError):
    """Lesson or module is missing its parent reference.

    Indicates corrupted reference data, not a caller mistake.
    """

    def __init__(self, message: str = "Lesson is not attached to a course"):
        super().__init__(message, "invalid_lesson_structure")


class AlreadyEnrolledError(LingalaError):
    def __init__(self, message: str = "User is already enrolled in this course"):
        super().__init__(message, "already_enrolled")


# ==============================================================================
# Upstream errors (retryable by the caller)
# ==============================================================================


class UpstreamUnavailableError(LingalaError):
    """Datastore or external collaborator failed."""

    retryable = True

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(message, "upstream_unavailable")


class UpstreamTimeoutError(LingalaError):
    """Datastore or external collaborator did not answer in time."""

    retryable = True

    def __init__(self, message: str = "Upstream request timed out"):
        super().__init__(message, "upstream_timeout")


ERROR_STATUS_MAP: dict[str, int] = {
    "authentication_required": status.HTTP_401_UNAUTHORIZED,
    "not_enrolled": status.HTTP_403_FORBIDDEN,
    "permission_denied": status.HTTP_403_FORBIDDEN,
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "invalid_lesson_structure": status.HTTP_400_BAD_REQUEST,
    "lesson_not_found": status.HTTP_404_NOT_FOUND,
    "module_not_found": status.HTTP_404_NOT_FOUND,
    "course_not_found": status.HTTP_404_NOT_FOUND,
    "already_enrolled": status.HTTP_409_CONFLICT,
    "upstream_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "upstream_timeout": status.HTTP_504_GATEWAY_TIMEOUT,
}


def status_for_error(error: LingalaError) -> int:
    """HTTP status code for a domain error."""
    return ERROR_STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
