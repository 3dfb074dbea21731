"""Exception classes for question resolution.

StepError subclasses describe why one cascade step did not produce a
result. Soft errors move the cascade to its next step; InfrastructureError
aborts the whole resolution attempt.
"""


class StepError(Exception):
    """Base class for a cascade step that produced no result."""

    soft = True

    def __init__(self, message: str = "", detail: str | None = None):
        self.message = message or self.__class__.__name__
        self.detail = detail
        super().__init__(self.message)

    def describe(self) -> str:
        """Short reason string for logs and audit records."""
        name = self.__class__.__name__.removesuffix("Error")
        if self.detail:
            return f"{name}: {self.detail}"
        if self.message != self.__class__.__name__:
            return f"{name}: {self.message}"
        return name


class NotFoundError(StepError):
    """Search returned no candidates."""

    pass


class RejectedError(StepError):
    """The judge found no acceptable candidate."""

    pass


class RetryBudgetExhaustedError(StepError):
    """A step gave up after its own bounded retries."""

    pass


class UnsupportedShapeError(StepError):
    """The question's shape cannot be authored automatically."""

    pass


class GenerationParseError(StepError):
    """Authored content could not be parsed into a question."""

    pass


class InfrastructureError(StepError):
    """A dependency failed; the resolution attempt cannot continue."""

    soft = False


class PaperLoadError(Exception):
    """A paper source could not be read or prepared."""

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(message)
