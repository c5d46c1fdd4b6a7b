"""
gemini.py — Thin async adapter over the google-genai SDK.

Two call shapes are used by the pipeline:

  describe()    [instruction text, image]        → free text
  synthesize()  [image, image..., prompt text]   → one image

The adapter only builds parts and reads responses; fallback policy belongs to
the orchestrators.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional, Sequence, Tuple

from google import genai
from google.genai import types as genai_types

from .codec import RasterImage
from .config import Settings
from .errors import SynthesisFailure

logger = logging.getLogger(__name__)


class GeminiImageClient:
    def __init__(self, client: genai.Client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiImageClient":
        return cls(genai.Client(api_key=settings.api_key))

    async def describe(self, model: str, image: RasterImage, instruction: str) -> str:
        """Ask a text model about one image. Returns the stripped response text."""
        parts = [
            genai_types.Part.from_text(text=instruction),
            _image_part(image),
        ]
        response = await self._client.aio.models.generate_content(model=model, contents=parts)
        return (getattr(response, "text", None) or "").strip()

    async def synthesize(
        self,
        model: str,
        images: Sequence[RasterImage],
        prompt: str,
        filename: str,
        label: str = "",
    ) -> RasterImage:
        """
        Generate one image from input images plus a prompt.

        Raises SynthesisFailure when the call errors, returns no candidates, or
        the first candidate carries no inline image part.
        """
        parts = [_image_part(img) for img in images]
        parts.append(genai_types.Part.from_text(text=prompt))

        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=parts,
                config=genai_types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )
        except Exception as e:
            raise SynthesisFailure(f"Image generation call failed: {e}") from e

        found = extract_inline_image(response)
        if found is None:
            reason = _block_reason(response)
            logger.error(f"model response did not contain an image part (block reason: {reason})")
            raise SynthesisFailure(
                f"The AI model did not return an image. Reason: {reason}. Please try again."
            )

        mime_type, data = found
        logger.debug(f"received image data ({mime_type}), {len(data)} bytes")
        return RasterImage.from_bytes(data, filename, mime_type=mime_type, label=label)


# ── Response helpers ──────────────────────────────────────────────────────────

def extract_inline_image(response) -> Optional[Tuple[str, bytes]]:
    """First inline image (mime, bytes) among the first candidate's parts."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline and inline.data:
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return inline.mime_type or "image/png", data
    return None


def _block_reason(response) -> str:
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None) if feedback else None
    if reason:
        return str(reason)
    if not (getattr(response, "candidates", None) or []):
        return "no candidates"
    return "no image part"


def _image_part(image: RasterImage) -> genai_types.Part:
    return genai_types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
