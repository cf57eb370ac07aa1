"""Pydantic v2 schemas package."""

from penguin_studio.schemas.generation import (
    EstimateResponse,
    GenerateResponse,
    GenerationRequest,
    Mode,
    Resolution,
    StatusResponse,
    Task,
    TaskStatus,
)

__all__ = [
    "EstimateResponse",
    "GenerateResponse",
    "GenerationRequest",
    "Mode",
    "Resolution",
    "StatusResponse",
    "Task",
    "TaskStatus",
]
