from __future__ import annotations

from typing import Optional


class GenerationError(RuntimeError):
    """Base class for failures raised by the generation pipeline."""


class IndexingTimeout(GenerationError):
    pass


class GenerationFailure(GenerationError):
    pass


class NoAuthorAvailable(GenerationError):
    pass


class PersistenceFailure(GenerationError):
    pass


class JobNotFound(GenerationError):
    pass


class JobAlreadyRunning(GenerationError):
    pass


class GenerationJobFailed(GenerationError):
    """
    Single failure surfaced by a generation run.

    `error` is the failure that stopped the run. `recording_error` is set when
    writing the error status to the store failed as well; it is kept for
    diagnostics and never replaces `error`.
    """

    def __init__(self, job_id: str, error: BaseException, recording_error: Optional[BaseException] = None):
        super().__init__(str(error) or error.__class__.__name__)
        self.job_id = job_id
        self.error = error
        self.recording_error = recording_error
