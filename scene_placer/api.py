"""
api.py — Entry points for a presentation layer.

    result = await compose_image(product, scene, PercentPoint(x_percent=50, y_percent=50))
    rotated = await rotate_product(product, "back view")

Without explicit settings the credential is read from the environment at call
time, so a missing key fails with ConfigurationError before any request is sent.
"""

from __future__ import annotations

from typing import Optional

from .codec import RasterImage
from .composer import CompositeRequest, CompositeResult, CompositionOrchestrator, ProgressCallback
from .config import Settings
from .gemini import GeminiImageClient
from .geometry import PercentPoint
from .rotator import RotationOrchestrator


async def compose_image(
    product: RasterImage,
    scene: RasterImage,
    placement: PercentPoint,
    custom_instructions: str = "",
    shadow_intensity: int = 50,
    settings: Optional[Settings] = None,
    client: Optional[GeminiImageClient] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> CompositeResult:
    settings = settings or Settings.from_env()
    request = CompositeRequest(
        product=product,
        scene=scene,
        placement=placement,
        custom_instructions=custom_instructions,
        shadow_intensity=shadow_intensity,
    )
    orchestrator = CompositionOrchestrator(settings, client=client, on_progress=on_progress)
    return await orchestrator.compose(request)


async def rotate_product(
    product: RasterImage,
    rotation_description: str,
    settings: Optional[Settings] = None,
    client: Optional[GeminiImageClient] = None,
) -> RasterImage:
    settings = settings or Settings.from_env()
    return await RotationOrchestrator(settings, client=client).rotate(product, rotation_description)
