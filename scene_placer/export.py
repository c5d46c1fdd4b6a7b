"""
export.py — Write a composition's outputs to disk.

Debug bundle layout:
  <dir>/01-resized-product.jpeg
  <dir>/02-resized-scene.jpeg
  <dir>/03-marked-scene.jpeg
  <dir>/composite-<scene>.jpeg  (when the final image is passed)
  <dir>/prompt.txt
  <dir>/debug.json        — manifest (filenames, sizes, prompt)
  <dir>/debug_bundle.zip  — optional, everything above
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from .codec import EXT_MAP, RasterImage
from .composer import CompositeResult, DebugBundle

logger = logging.getLogger(__name__)

_DEBUG_NAMES = ("01-resized-product", "02-resized-scene", "03-marked-scene")


class ImageEntry(BaseModel):
    role: str
    file: str
    source_filename: str
    mime_type: str
    width: int
    height: int


class DebugManifest(BaseModel):
    final_image: Optional[ImageEntry] = None
    images: List[ImageEntry]
    final_prompt: str


def _entry(role: str, path: Path, image: RasterImage) -> ImageEntry:
    return ImageEntry(
        role=role,
        file=path.name,
        source_filename=image.filename,
        mime_type=image.mime_type,
        width=image.width,
        height=image.height,
    )


def save_debug_bundle(
    bundle: DebugBundle,
    output_dir: Path,
    final_image: Optional[RasterImage] = None,
    make_zip: bool = False,
) -> Path:
    """
    Save the three intermediate images, the prompt and a JSON manifest, plus
    a copy of the final image when one is given.

    Returns the manifest path (or the ZIP path when make_zip is set).
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    entries: List[ImageEntry] = []
    for name, image in zip(_DEBUG_NAMES, bundle.images):
        path = image.save(output_dir / f"{name}{EXT_MAP.get(image.mime_type, '.img')}")
        written.append(path)
        entries.append(_entry(name[3:], path, image))

    prompt_path = output_dir / "prompt.txt"
    prompt_path.write_text(bundle.final_prompt, encoding="utf-8")
    written.append(prompt_path)

    final_entry = None
    if final_image is not None:
        final_path = final_image.save(output_dir / final_image.filename)
        written.append(final_path)
        final_entry = _entry("final", final_path, final_image)

    manifest = DebugManifest(final_image=final_entry, images=entries, final_prompt=bundle.final_prompt)
    manifest_path = output_dir / "debug.json"
    manifest_path.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
    written.append(manifest_path)
    logger.info(f"debug bundle saved → {output_dir}")

    if not make_zip:
        return manifest_path

    zip_path = output_dir / "debug_bundle.zip"
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for path in written:
            zf.write(path, path.name)
    logger.info(f"ZIP created: {zip_path.name} ({zip_path.stat().st_size // 1024} KB)")
    return zip_path


def save_result(result: CompositeResult, output_dir: Path, debug: bool = False) -> Path:
    """Write the final composite (and optionally its debug bundle). Returns the image path."""
    output_dir = Path(output_dir)
    image_path = result.image.save(output_dir / result.image.filename)
    if debug:
        save_debug_bundle(result.debug, output_dir / "debug", final_image=result.image)
    return image_path
