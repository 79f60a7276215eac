"""
Pipeline errors.

A stage error aborts the whole run; constraint violations and image
failures never surface here.
"""

from enum import Enum
from typing import Optional


class PipelineErrorCode(str, Enum):
    OUTLINE_FAILED = "OUTLINE_FAILED"
    CONTENT_FAILED = "CONTENT_FAILED"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_GENERATION_FAILED = "TEMPLATE_GENERATION_FAILED"
    CHECKPOINT_FAILED = "CHECKPOINT_FAILED"


class PipelineError(Exception):
    """A pipeline stage failed; slide_index names the failing slide or slot, stage the step."""

    def __init__(
        self,
        message: str,
        code: PipelineErrorCode,
        slide_index: Optional[int] = None,
        cause: Optional[BaseException] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.slide_index = slide_index
        self.cause = cause
        self.stage = stage

    def __str__(self) -> str:
        where = f" (slide {self.slide_index})" if self.slide_index is not None else ""
        return f"[{self.code.value}] {self.message}{where}"

    def to_dict(self) -> dict:
        data = {"code": self.code.value, "message": self.message, "slide_index": self.slide_index}
        if self.stage is not None:
            data["stage"] = self.stage
        return data
