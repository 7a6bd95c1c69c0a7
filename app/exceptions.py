"""
Error hierarchy for the DVR manager.

ConfigError is fatal and only raised at startup. Everything else is scoped to
a single cycle (GuideError) or a single broadcast (TemplateError,
SubmissionError) and is reported by the scheduler loop.
"""


class DVRError(Exception):
    """Base class for all DVR manager errors"""
    pass


class ConfigError(DVRError):
    """No usable library mapping or credential"""
    pass


class GuideError(DVRError):
    """Transport or parse failure talking to the media server"""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class TemplateError(DVRError):
    """A subscription could not be assembled for a broadcast"""
    pass


BuildError = TemplateError


class SubmissionError(DVRError):
    """The media server rejected a subscription"""
    pass
