"""Errors raised by the page-composition pipeline."""


class ValidationError(Exception):
    """Generated value did not satisfy its validator."""


class GenerationError(Exception):
    """Structured call failed with schema and again without it."""

    def __init__(self, task: str, cause: BaseException | None = None) -> None:
        self.task = task
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{task} generation failed after retry{detail}")


class CheckpointError(Exception):
    """Snapshot could not be written to the checkpoint store."""


class PagePipelineError(Exception):
    """Unrecovered failure inside one page's pipeline."""

    def __init__(self, page_id: str, cause: BaseException) -> None:
        self.page_id = page_id
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)
