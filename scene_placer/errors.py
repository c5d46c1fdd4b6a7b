"""
errors.py — Exception taxonomy for the placement pipeline.

  ConfigurationError  — credential / config missing or invalid (before any I/O)
  DecodeError         — malformed data URL or unreadable image bytes
  AnalysisDegraded    — a description call failed; absorbed with a fallback
  SynthesisFailure    — the image call failed or returned no image
  GeometryError       — content rect / marker outside the canvas
  RequestError        — caller supplied an invalid request value
"""

from __future__ import annotations

from typing import Optional


class ScenePlacerError(Exception):
    """Base class for every error raised by scene_placer."""


class ConfigurationError(ScenePlacerError):
    pass


class DecodeError(ScenePlacerError, ValueError):
    pass


class SynthesisFailure(ScenePlacerError):
    pass


class GeometryError(ScenePlacerError):
    pass


class RequestError(ScenePlacerError, ValueError):
    pass


class AnalysisDegraded(ScenePlacerError):
    """
    Record of a failed lighting / location description call.

    Never propagated out of the orchestrator: it is built, logged, and the
    pipeline continues with the stage's fallback text.
    """

    def __init__(self, stage: str, cause: Optional[BaseException] = None) -> None:
        self.stage = stage
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause else "empty response"
        super().__init__(f"{stage} degraded — {detail}")
