"""
prompts.py — Instruction text for every Gemini call in the pipeline.

Pure string assembly, no API calls:

  LIGHTING_ANALYSIS_PROMPT      clean scene        → one-sentence lighting description
  LOCATION_DESCRIPTION_PROMPT   marked scene       → dense description of the marked spot
  build_composite_prompt()      product + scene    → final composite image
  build_rotation_prompt()       product            → product seen from another angle
"""

from __future__ import annotations

from typing import Sequence, Tuple

from .config import SHADOW_MAX_DESCRIPTOR, SHADOW_SCALE

# ── Fixed analysis instructions ───────────────────────────────────────────────

LIGHTING_ANALYSIS_PROMPT = (
    "You are an expert in lighting analysis for photography and CGI. Analyze the "
    "provided scene image and describe the primary light sources in a single, concise "
    "sentence. Focus on the direction, intensity, and color of the light. Examples: "
    "\"The scene is lit by a soft, warm light coming from a large window on the right.\" "
    "or \"The primary light source is a bright, cool overhead light, causing sharp "
    "shadows directly underneath objects.\" or \"The scene has multiple light sources, "
    "including a warm lamp on the left and cool ambient light from a window on the right.\""
)

LOCATION_DESCRIPTION_PROMPT = """
You are an expert scene analyst. I will provide you with an image that has a red marker on it.
Your task is to provide a very dense, semantic description of what is at the exact location of the red marker.
Be specific about surfaces, objects, and spatial relationships. This description will be used to guide another AI in placing a new object.

Example semantic descriptions:
- "The product location is on the dark grey fabric of the sofa cushion, in the middle section, slightly to the left of the white throw pillow."
- "The product location is on the light-colored wooden floor, in the patch of sunlight coming from the window, about a foot away from the leg of the brown leather armchair."
- "The product location is on the white marble countertop, just to the right of the stainless steel sink and behind the green potted plant."

On top of the semantic description above, give a rough relative-to-image description.

Example relative-to-image descriptions:
- "The product location is about 10% away from the bottom-left of the image."
- "The product location is about 20% away from the right of the image."

Provide only the two descriptions concatenated in a few sentences.
"""

FALLBACK_LIGHTING = "The lighting in the scene should be analyzed to create realistic shadows."
FALLBACK_LOCATION = "at the specified location."


# ── Shadow intensity ──────────────────────────────────────────────────────────

def shadow_descriptor(
    intensity: int,
    scale: Sequence[Tuple[int, str]] = SHADOW_SCALE,
    above: str = SHADOW_MAX_DESCRIPTOR,
) -> str:
    """Map a 0–100 shadow slider value to its qualitative descriptor."""
    for upper, descriptor in scale:
        if intensity <= upper:
            return descriptor
    return above


# ── Composite ─────────────────────────────────────────────────────────────────

def build_composite_prompt(
    location_description: str,
    lighting_description: str,
    shadow_intensity: int,
    custom_instructions: str = "",
    shadow_scale: Sequence[Tuple[int, str]] = SHADOW_SCALE,
) -> str:
    """
    Final instruction for the image model.

    The image parts are sent first (product, then scene); this text refers to
    them by position.
    """
    shadow = shadow_descriptor(shadow_intensity, shadow_scale)

    override = ""
    custom = (custom_instructions or "").strip()
    if custom:
        override = (
            "\n-   **User's Custom Instructions (Override):**\n"
            f"    -   If provided, these instructions take precedence. \"{custom}\""
        )

    return f"""
**Role:**
You are a visual composition expert. Your task is to take a 'product' image and seamlessly integrate it into a 'scene' image, adjusting for perspective, lighting, and scale.

**Specifications:**
-   **Product to add:**
    The first image provided. It may be surrounded by black padding or background, which you should ignore and treat as transparent and only keep the product.
-   **Scene to use:**
    The second image provided. It may also be surrounded by black padding, which you should ignore.
-   **Placement Instruction (Crucial):**
    -   You must place the product at the location described below exactly. You should only place the product once. Use this dense, semantic description to find the exact spot in the scene.
    -   **Product location Description:** "{location_description}"
-   **Lighting & Shadow Instructions (Crucial):**
    -   **Scene Lighting Analysis:** "{lighting_description}"
    -   Based on this analysis, you MUST render shadows for the product that match the scene's lighting. The shadows should be subtle, context-aware, and accurately reflect the direction, softness, and color of the light sources. The shadow must ground the product in the scene naturally.
    -   **Shadow Intensity (Crucial User Override):** The user has specified the desired shadow intensity. You must render the shadows as: **"{shadow}"**. This is a strict requirement.{override}
-   **Final Image Requirements:**
    -   The output image's style, lighting, shadows, reflections, and camera perspective must exactly match the original scene.
    -   Do not just copy and paste the product. You must intelligently re-render it to fit the context. Adjust the product's perspective and orientation to its most natural position, scale it appropriately.
    -   The product must have proportional realism. For example, a lamp product can't be bigger than a sofa in scene.
    -   You must not return the original scene image without product placement. The product must be always present in the composite image.

The output should ONLY be the final, composed image. Do not add any text or explanation.
"""


# ── Rotation ──────────────────────────────────────────────────────────────────

ROTATION_VIEWS = {
    "front": "front view",
    "left":  "a view of its left side",
    "right": "a view of its right side",
    "back":  "back view",
}

ROTATION_BACKGROUND = "#f0f0f0"


def build_rotation_prompt(rotation_description: str) -> str:
    return f"""
**Role:**
You are an expert 3D product visualizer. Your task is to re-render the provided product image from a different angle.

**Specifications:**
-   **Product:** The provided image contains a single product, possibly with a simple or padded background.
-   **Task:** Re-render the product to show the **"{rotation_description}"**.
-   **Requirements:**
    -   Maintain the product's identity, design, colors, and textures perfectly.
    -   The background of the output image MUST be a solid, neutral light gray ({ROTATION_BACKGROUND}). This is crucial for easy use later. Do not include any shadows on the background.
    -   The product should be centered in the frame.
    -   The lighting on the product should be neutral and professional, as if in a studio.

The output should ONLY be the image of the rotated product. Do not add any text or explanation.
"""
