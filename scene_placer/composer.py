"""
composer.py — Scene composition pipeline.

Stages (strictly sequential after NORMALIZE):

  1. MEASURE            original scene width/height (for marker + crop-back)
  2. NORMALIZE          letterbox product and scene concurrently
  3. ANALYZE_LIGHTING   clean scene → lighting sentence      (fallback on failure)
  4. MARK               red dot at the drop point
  5. DESCRIBE_LOCATION  marked scene → location description  (fallback on failure)
  6. SYNTHESIZE         clean product + clean scene + prompt → square image (fatal)
  7. RESTORE            crop the square back to the scene's aspect ratio
  8. DONE               CompositeResult + DebugBundle

Nothing is cached or retried; a fatal error discards every artifact built so far.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple

from .codec import RasterImage
from .config import Settings
from .errors import AnalysisDegraded, RequestError
from .gemini import GeminiImageClient
from .geometry import PercentPoint
from .imaging import crop_to_aspect, letterbox, stamp_marker
from .prompts import (
    FALLBACK_LIGHTING,
    FALLBACK_LOCATION,
    LIGHTING_ANALYSIS_PROMPT,
    LOCATION_DESCRIPTION_PROMPT,
    build_composite_prompt,
)

logger = logging.getLogger(__name__)


class CompositionStage(str, Enum):
    MEASURE           = "measure"
    NORMALIZE         = "normalize"
    ANALYZE_LIGHTING  = "analyze_lighting"
    MARK              = "mark"
    DESCRIBE_LOCATION = "describe_location"
    SYNTHESIZE        = "synthesize"
    RESTORE           = "restore"
    DONE              = "done"


ProgressCallback = Callable[[CompositionStage], None]


# ── Request / result models ───────────────────────────────────────────────────

@dataclass(frozen=True)
class CompositeRequest:
    product: RasterImage
    scene: RasterImage
    placement: PercentPoint
    custom_instructions: str = ""
    shadow_intensity: int = 50

    def __post_init__(self) -> None:
        if not isinstance(self.placement, PercentPoint):
            raise RequestError(
                f"placement must be a PercentPoint, got {type(self.placement).__name__}"
            )
        if isinstance(self.shadow_intensity, bool) or not isinstance(self.shadow_intensity, int):
            raise RequestError(
                f"shadow_intensity must be an integer, got {type(self.shadow_intensity).__name__}"
            )
        if not 0 <= self.shadow_intensity <= 100:
            raise RequestError(f"shadow_intensity must be 0–100, got {self.shadow_intensity}")


@dataclass(frozen=True)
class DebugBundle:
    """Intermediate artifacts of one composition, for inspection only."""
    resized_product: RasterImage
    resized_scene: RasterImage
    marked_scene: RasterImage
    final_prompt: str

    @property
    def images(self) -> Tuple[RasterImage, RasterImage, RasterImage]:
        return self.resized_product, self.resized_scene, self.marked_scene


@dataclass(frozen=True)
class CompositeResult:
    image: RasterImage
    debug: DebugBundle


# ── Orchestrator ──────────────────────────────────────────────────────────────

class CompositionOrchestrator:
    """Runs the multi-call composition pipeline for one request at a time."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[GeminiImageClient] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.settings = settings
        self.client = client or GeminiImageClient.from_settings(settings)
        self.on_progress = on_progress

    async def compose(self, request: CompositeRequest) -> CompositeResult:
        s = self.settings
        d = s.target_dimension
        logger.info("starting multi-step composition")

        # 1. MEASURE
        self._enter(CompositionStage.MEASURE)
        original_w, original_h = request.scene.width, request.scene.height

        # 2. NORMALIZE: no data dependency between the two
        self._enter(CompositionStage.NORMALIZE)
        product_norm, scene_norm = await asyncio.gather(
            _in_executor(letterbox, request.product, d, s.jpeg_quality),
            _in_executor(letterbox, request.scene, d, s.jpeg_quality),
        )

        # 3. ANALYZE_LIGHTING: on the clean scene
        self._enter(CompositionStage.ANALYZE_LIGHTING)
        lighting = await self._describe_or_fallback(
            CompositionStage.ANALYZE_LIGHTING,
            scene_norm.image,
            LIGHTING_ANALYSIS_PROMPT,
            FALLBACK_LIGHTING,
        )

        # 4. MARK
        self._enter(CompositionStage.MARK)
        marked = await _in_executor(
            stamp_marker,
            scene_norm,
            request.placement,
            original_w,
            original_h,
            s.marker_min_radius,
            s.marker_radius_ratio,
            s.jpeg_quality,
        )

        # 5. DESCRIBE_LOCATION: on the marked scene
        self._enter(CompositionStage.DESCRIBE_LOCATION)
        location = await self._describe_or_fallback(
            CompositionStage.DESCRIBE_LOCATION,
            marked,
            LOCATION_DESCRIPTION_PROMPT,
            FALLBACK_LOCATION,
        )

        # 6. SYNTHESIZE: clean images only, the marker never reaches the image model
        self._enter(CompositionStage.SYNTHESIZE)
        prompt = build_composite_prompt(
            location,
            lighting,
            request.shadow_intensity,
            request.custom_instructions,
            s.shadow_scale,
        )
        generated = await self.client.synthesize(
            s.image_model,
            [product_norm.image, scene_norm.image],
            prompt,
            filename=f"generated-{request.scene.filename}",
        )

        # 7. RESTORE
        self._enter(CompositionStage.RESTORE)
        final = await _in_executor(
            crop_to_aspect,
            generated,
            original_w,
            original_h,
            d,
            s.jpeg_quality,
            composite_filename(request.scene.filename),
        )

        # 8. DONE
        self._enter(CompositionStage.DONE)
        return CompositeResult(
            image=final,
            debug=DebugBundle(
                resized_product=product_norm.image,
                resized_scene=scene_norm.image,
                marked_scene=marked,
                final_prompt=prompt,
            ),
        )

    # ── Internals ─────────────────────────────────────────────────────────────

    def _enter(self, stage: CompositionStage) -> None:
        logger.info(f"composition stage: {stage.value}")
        if self.on_progress:
            self.on_progress(stage)

    async def _describe_or_fallback(
        self,
        stage: CompositionStage,
        image: RasterImage,
        instruction: str,
        fallback: str,
    ) -> str:
        try:
            text = await self.client.describe(self.settings.analysis_model, image, instruction)
        except Exception as e:
            logger.warning(f"{AnalysisDegraded(stage.value, e)} — using fallback text")
            return fallback
        if not text:
            logger.warning(f"{AnalysisDegraded(stage.value)} — using fallback text")
            return fallback
        logger.info(f"{stage.value}: {text}")
        return text


def composite_filename(scene_filename: str) -> str:
    return f"composite-{Path(scene_filename).stem or 'scene'}.jpeg"


async def _in_executor(fn, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args))
