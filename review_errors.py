"""Error types raised by the repository reviewer."""


class ReviewError(Exception):
    """Base class for every failure shown to the user."""


class ConfigurationError(ReviewError):
    """A required setting (e.g. the Cohere API key) is missing or invalid."""


class InvalidInput(ReviewError, ValueError):
    """The submitted repository URL is not a GitHub repository URL."""


class UpstreamUnavailable(ReviewError):
    """GitHub answered with a non-success status or could not be reached."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class NoAnalyzableContent(ReviewError):
    """Nothing in the repository matched the file selection rules."""


class GenerationFailure(ReviewError):
    """A call to the generation API raised."""
