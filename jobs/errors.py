"""Failure taxonomy for generative jobs.

Every failure raised inside a provider call is converted by the orchestrator
into one of these, recorded, and returned on the job. Only InputFailure and
ConfigurationFailure are meant to reach the caller as exceptions.
"""


class JobError(Exception):
    """Base class for all job failures."""

    category = "remote"


class RemoteCallFailure(JobError):
    """The remote generative service rejected the call or it could not be reached."""

    category = "remote"


class PollTimeout(RemoteCallFailure):
    """A long-running operation did not finish before the polling ceiling."""

    category = "timeout"


class ValidationFailure(JobError):
    """Structured output could not be parsed or did not match the expected shape."""

    category = "validation"


class InputFailure(JobError):
    """User input was rejected before any remote call was made."""

    category = "input"


class ConfigurationFailure(JobError):
    """A required credential or display region is missing."""

    category = "configuration"


class JobCancelled(JobError):
    """The job was superseded by a newer submission and stopped early."""

    category = "cancelled"
