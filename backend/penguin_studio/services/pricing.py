from __future__ import annotations
"""Display-only price estimates. Only successful generations are charged."""

from typing import Any

from penguin_studio.schemas.generation import EstimateResponse, Resolution

# USD per second of generated video
RESOLUTION_RATES: dict[str, float] = {
    "480p": 0.02,
    "720p": 0.03,
    "1080p": 0.05,
}
AUDIO_RATE = 0.01


def pricing_table() -> dict[str, Any]:
    return {
        "resolution": dict(RESOLUTION_RATES),
        "audio": {"enabled": AUDIO_RATE, "disabled": 0},
        "note": "Pricing is per second of generated video. Only successful generations are charged.",
    }


def estimate_cost(duration: int, resolution: Resolution | str, audio: bool) -> EstimateResponse:
    """Estimate as ``(resolution rate + audio rate) × duration``.

    The web calculator this replaces also added a per-duration surcharge to
    the per-second rate (``(surcharge + resolution + audio) × duration``);
    that term contradicted its own per-second pricing note and is not
    applied here, so estimates come out lower than that calculator's.
    """
    resolution = Resolution(resolution)
    resolution_rate = RESOLUTION_RATES[resolution.value]
    audio_rate = AUDIO_RATE if audio else 0.0
    per_second = resolution_rate + audio_rate
    return EstimateResponse(
        duration=duration,
        resolution=resolution,
        audio=audio,
        resolution_rate=resolution_rate,
        audio_rate=audio_rate,
        per_second=round(per_second, 4),
        total=round(per_second * duration, 2),
    )
