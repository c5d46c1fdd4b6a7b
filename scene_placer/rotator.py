"""
rotator.py — Re-render a product from another implied camera angle.

Single pass, no fallback: letterbox → rotation prompt → one image call.
"restore" is not a rotation; the caller swaps back to the uploaded original
itself, so it is rejected here.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

from .codec import RasterImage
from .config import Settings
from .errors import RequestError
from .gemini import GeminiImageClient
from .imaging import letterbox
from .prompts import build_rotation_prompt

logger = logging.getLogger(__name__)

RESTORE = "restore"


class RotationOrchestrator:
    def __init__(self, settings: Settings, client: Optional[GeminiImageClient] = None) -> None:
        self.settings = settings
        self.client = client or GeminiImageClient.from_settings(settings)

    async def rotate(self, product: RasterImage, rotation_description: str) -> RasterImage:
        description = (rotation_description or "").strip()
        if not description:
            raise RequestError("Rotation description must not be empty")
        if description.lower() == RESTORE:
            raise RequestError("'restore' is handled by the caller, not by the rotation pipeline")

        logger.info(f"rotating product to: {description}")
        s = self.settings
        loop = asyncio.get_running_loop()
        normalized = await loop.run_in_executor(
            None, letterbox, product, s.target_dimension, s.jpeg_quality
        )

        return await self.client.synthesize(
            s.image_model,
            [normalized.image],
            build_rotation_prompt(description),
            filename=rotated_filename(description, product.filename),
            label=description,
        )


def rotated_filename(description: str, filename: str) -> str:
    slug = re.sub(r"\s+", "-", description.strip())
    return f"rotated-{slug}-{filename}"
