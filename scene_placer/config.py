"""
config.py — Runtime settings for the placement pipeline.

Settings are built once (usually from the environment) and injected into the
orchestrators; nothing in the pipeline reads os.environ on its own.

Env vars:
    GEMINI_API_KEY=...                      # required (API_KEY accepted too)
    SCENE_PLACER_ANALYSIS_MODEL=...         # optional, text description model
    SCENE_PLACER_IMAGE_MODEL=...            # optional, image synthesis model
    SCENE_PLACER_TARGET_DIMENSION=1024      # optional, letterbox square size
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError

# ── Defaults ──────────────────────────────────────────────────────────────────

ANALYSIS_MODEL   = "gemini-2.5-flash-lite"
IMAGE_MODEL      = "gemini-2.5-flash-image"
TARGET_DIMENSION = 1024
JPEG_QUALITY     = 95
MIN_DIMENSION    = 64

# Marker radius = max(MARKER_MIN_RADIUS, MARKER_RADIUS_RATIO * min(canvas w, h))
MARKER_MIN_RADIUS   = 5.0
MARKER_RADIUS_RATIO = 0.015

# (inclusive upper bound, descriptor): anything above the last bound uses
# SHADOW_MAX_DESCRIPTOR.
SHADOW_SCALE: Tuple[Tuple[int, str], ...] = (
    (10, "very faint and almost invisible"),
    (35, "subtle and soft"),
    (65, "normal and realistic"),
    (85, "strong and defined"),
)
SHADOW_MAX_DESCRIPTOR = "very dark and dramatic with high contrast"

_KEY_VARS = ("GEMINI_API_KEY", "API_KEY")


@dataclass(frozen=True)
class Settings:
    api_key: str
    analysis_model: str = ANALYSIS_MODEL
    image_model: str = IMAGE_MODEL
    target_dimension: int = TARGET_DIMENSION
    jpeg_quality: int = JPEG_QUALITY
    marker_min_radius: float = MARKER_MIN_RADIUS
    marker_radius_ratio: float = MARKER_RADIUS_RATIO
    shadow_scale: Tuple[Tuple[int, str], ...] = field(default=SHADOW_SCALE)

    def __post_init__(self) -> None:
        if not _clean_key(self.api_key):
            raise ConfigurationError(
                "Gemini API key is not configured. Set GEMINI_API_KEY in the "
                "environment or .env file."
            )
        if self.target_dimension < MIN_DIMENSION:
            raise ConfigurationError(
                f"target_dimension must be at least {MIN_DIMENSION}, got {self.target_dimension}"
            )
        if not 1 <= self.jpeg_quality <= 100:
            raise ConfigurationError(f"jpeg_quality must be 1–100, got {self.jpeg_quality}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the process environment (or a given mapping)."""
        env = os.environ if environ is None else environ

        api_key = ""
        for var in _KEY_VARS:
            api_key = _clean_key(env.get(var, ""))
            if api_key:
                break

        raw_dim = env.get("SCENE_PLACER_TARGET_DIMENSION", "").strip()
        try:
            target_dimension = int(raw_dim) if raw_dim else TARGET_DIMENSION
        except ValueError:
            raise ConfigurationError(
                f"SCENE_PLACER_TARGET_DIMENSION must be an integer, got {raw_dim!r}"
            ) from None

        return cls(
            api_key=api_key,
            analysis_model=env.get("SCENE_PLACER_ANALYSIS_MODEL", "").strip() or ANALYSIS_MODEL,
            image_model=env.get("SCENE_PLACER_IMAGE_MODEL", "").strip() or IMAGE_MODEL,
            target_dimension=target_dimension,
        )


def _clean_key(value: Optional[str]) -> str:
    # a literal "undefined" counts as unset
    key = (value or "").strip()
    return "" if key == "undefined" else key
