"""Custom exception hierarchy for TintSmith."""


class TintSmithError(Exception):
    """Base exception for all TintSmith errors."""


class ValidationError(TintSmithError):
    """Input validation failures.

    Carries the offending palette ``name`` (when known) and ``value``.
    """

    def __init__(self, message: str, *, name=None, value=None):
        super().__init__(message)
        self.name = name
        self.value = value


class InvalidColorError(ValidationError, ValueError):
    """Color string is not parseable as hex or rgb()."""


class InvalidStepError(ValidationError, ValueError):
    """Step is not one of the nine canonical values 100..900."""


class EmptyNameError(ValidationError, ValueError):
    """Palette name is missing or blank."""


class InvalidNameError(ValidationError, ValueError):
    """Palette name contains a reserved character."""


class DuplicateNameError(ValidationError):
    """Conflicting requests for the same name within one batch."""


class DocumentError(TintSmithError):
    """Errors related to reading or writing a palette document."""


class DocumentFormatError(DocumentError):
    """Unsupported or corrupted document format."""


class PipelineError(TintSmithError):
    """Errors during an update run."""
