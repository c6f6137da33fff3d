"""Error taxonomy for journey generation."""


class JourneyError(Exception):
    """Base class for everything the narrator raises on purpose."""


class StepTimeoutError(JourneyError, TimeoutError):
    """A named remote step exceeded its deadline."""

    def __init__(self, message: str, step: str | None = None, index: int | None = None):
        super().__init__(message)
        self.step = step
        self.index = index


class GenerationError(JourneyError):
    """Upstream text or audio generation failed for a reason other than timeout."""

    def __init__(self, message: str, step: str | None = None, index: int | None = None):
        super().__init__(message)
        self.step = step
        self.index = index


class ValidationError(JourneyError):
    """Route could not be resolved, or is outside what we can narrate."""


class JourneyStartError(JourneyError):
    """Initial generation failed; carries a message fit to show the listener."""

    def __init__(self, user_message: str):
        super().__init__(user_message)
        self.user_message = user_message
