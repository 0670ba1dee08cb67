"""Custom exceptions for ResumeTailor."""


class ResumeTailorError(Exception):
    """Base exception for ResumeTailor."""
    pass


class ConfigError(ResumeTailorError):
    """Invalid or missing configuration error."""
    pass


class ValidationError(ResumeTailorError):
    """Input or output failed a validation check (degenerate prompt, too-short result)."""
    pass


class ProviderError(ResumeTailorError):
    """Provider/network/SDK failure, timeout, or unusable model output."""
    pass


class OrchestrationError(ResumeTailorError):
    """Tailoring loop failure (e.g. no attempt produced a usable generation)."""
    pass


class NotFoundError(ResumeTailorError):
    """Resume is missing or not owned by the requesting user."""
    pass


class PollingTimeout(ResumeTailorError):
    """Progress polling gave up before the job reached a terminal state."""
    pass
