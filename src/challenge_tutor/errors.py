"""Exceptions raised by the practice engine."""


class TutorError(Exception):
    """Base class for all engine errors."""


class InvalidSubmission(TutorError):
    """A submission was rejected before anything was written."""


class NotFound(TutorError):
    """A referenced user or challenge does not exist."""


class ConfigError(TutorError):
    """A stored setting could not be parsed."""


class PersistenceError(TutorError):
    """A database write or read failed part way through a submission.

    ``stage`` names the pipeline step that failed. Steps before it have
    already been committed.
    """

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
