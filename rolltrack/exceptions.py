from typing import Any, Optional


class RollEngineError(Exception):
    """Base class for failures reported by the roll tracking engine."""

    def __init__(self, message: str, roll_id: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.roll_id = roll_id


class InvalidStage(RollEngineError):
    """A filter or render request named a stage outside the pipeline."""

    def __init__(self, stage: Any):
        super().__init__(f"Invalid stage '{stage}'. Must be one of: film, printing, cutting, done, archived")
        self.stage = stage


class UnknownStage(RollEngineError):
    """A roll carries a stage that has no display label."""

    def __init__(self, stage: Any, roll_id: Optional[Any] = None):
        super().__init__(f"Unknown stage '{stage}' on roll {roll_id}", roll_id=roll_id)
        self.stage = stage


class EmptySelection(RollEngineError):
    def __init__(self, message: str = "No rolls selected for the report"):
        super().__init__(message)


class IncompleteRecord(RollEngineError):
    """A label was requested for a roll missing its number or weight."""

    def __init__(self, roll_id: Any, missing: list):
        super().__init__(f"Roll {roll_id} is missing required fields: {', '.join(missing)}", roll_id=roll_id)
        self.missing = missing
