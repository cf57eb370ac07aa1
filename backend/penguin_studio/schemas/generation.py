from __future__ import annotations
"""Pydantic v2 schemas for generation requests, tasks, and API payloads.

Multipart form fields arrive as strings; ``parse_generation_form`` is the
single place they are turned into a typed ``GenerationRequest``.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from penguin_studio.errors import ValidationError

TASK_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


class Mode(str, Enum):
    IMAGE = "image"
    TEXT = "text"


class Resolution(str, Enum):
    P480 = "480p"
    P720 = "720p"
    P1080 = "1080p"


class TaskStatus(str, Enum):
    """Remote task status vocabulary."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> TaskStatus:
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.CANCELED)

    @property
    def rank(self) -> int:
        """Position in the happy-path lifecycle; terminal states share the top rank."""
        if self.is_terminal:
            return 3
        return {TaskStatus.UNKNOWN: 0, TaskStatus.PENDING: 1, TaskStatus.RUNNING: 2}[self]


class GenerationRequest(BaseModel):
    """One user submission. Immutable once built."""

    mode: Mode
    prompt: str = ""
    negative_prompt: str = ""
    duration: Literal[5, 10] = 5
    resolution: Resolution = Resolution.P1080
    audio: bool = True
    watermark: bool = False
    prompt_extend: bool = True
    image_path: str | None = None

    model_config = ConfigDict(frozen=True)


class Task(BaseModel):
    """Local bookkeeping for one remote task."""

    task_id: str
    mode: Mode | None = None
    status: TaskStatus = TaskStatus.PENDING
    remote_video_url: str | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ──────── API payloads (camelCase on the wire) ────────

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateResponse(_CamelModel):
    success: bool = True
    task_id: str
    message: str


class StatusResponse(_CamelModel):
    success: bool
    status: TaskStatus | None = None
    progress: int | None = None
    video_url: str | None = None
    message: str | None = None
    error: str | None = None


class EstimateResponse(_CamelModel):
    duration: int
    resolution: Resolution
    audio: bool
    resolution_rate: float
    audio_rate: float
    per_second: float
    total: float
    currency: str = "USD"


# ──────── Form parsing ────────

def parse_bool(value: str | bool | None, field: str, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValidationError(f"Invalid value for {field}: expected true or false, got {value!r}.")


def parse_duration(value: str | int | None) -> int:
    if value is None or value == "":
        return 5
    try:
        duration = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid duration: {value!r}. Choose 5 or 10 seconds.") from None
    if duration not in (5, 10):
        raise ValidationError(f"Invalid duration: {duration}. Choose 5 or 10 seconds.")
    return duration


def parse_resolution(value: str | None) -> Resolution:
    if value is None or value == "":
        return Resolution.P1080
    try:
        return Resolution(value.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid resolution: {value!r}. Choose 480p, 720p or 1080p."
        ) from None


def parse_generation_form(
    *,
    has_image: bool,
    prompt: str | None = None,
    text_prompt: str | None = None,
    negative_prompt: str | None = None,
    duration: str | None = None,
    resolution: str | None = None,
    audio: str | None = None,
    prompt_extend: str | None = None,
    watermark: str | None = None,
) -> GenerationRequest:
    """Build a GenerationRequest from raw multipart fields.

    The presence of an image decides the mode. Text mode requires a
    non-empty prompt, read from ``textPrompt`` with ``prompt`` as fallback.
    """
    mode = Mode.IMAGE if has_image else Mode.TEXT

    if mode is Mode.TEXT:
        text = (text_prompt or "").strip() or (prompt or "").strip()
        if not text:
            raise ValidationError("No text prompt provided for text-to-video mode.")
    else:
        text = (prompt or "").strip()

    return GenerationRequest(
        mode=mode,
        prompt=text,
        negative_prompt=(negative_prompt or "").strip(),
        duration=parse_duration(duration),
        resolution=parse_resolution(resolution),
        audio=parse_bool(audio, "audio", True),
        watermark=parse_bool(watermark, "watermark", False),
        prompt_extend=parse_bool(prompt_extend, "promptExtend", True),
    )


def validate_task_id(task_id: str) -> str:
    if not TASK_ID_PATTERN.match(task_id or ""):
        raise ValidationError("Invalid task id")
    return task_id
