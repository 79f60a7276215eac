"""
Validation Models for deckforge

Constraint violations are data, not exceptions: the repair engine decides
what to do with them from their action tag.
"""

from typing import List, Literal, Union
from pydantic import BaseModel, Field

RepairAction = Literal["shorten", "split", "expand", "adjust_title"]


class ConstraintViolation(BaseModel):
    field: str = Field(..., description="Offending field, e.g. 'title' or 'bullets[2]'")
    message: str = Field(..., description="Human readable description")
    current: Union[int, str] = Field(..., description="Current value, usually a length or count")
    limit: int = Field(..., description="Limit that was breached")
    action: RepairAction = Field(..., description="Repair strategy for this violation")


class SlideValidationResult(BaseModel):
    slide_index: int
    violations: List[ConstraintViolation] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations


class DeckValidationResult(BaseModel):
    is_valid: bool
    slide_results: List[SlideValidationResult] = Field(default_factory=list)
    total_violations: int = 0

    @property
    def needs_repair(self) -> bool:
        return not self.is_valid
