"""Image preprocessing ahead of OCR.

Grayscale, contrast boost, sharpen, then an aspect-preserving downscale.
The processed copy is written next to the original with the "originals"
path segment swapped for "processed"; the original is left untouched.
"""

import logging
from pathlib import Path
from typing import Dict, Tuple, Union

from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from pipeline.config import ImageProcessingConfig


logger = logging.getLogger(__name__)

ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ORIGINALS_SEGMENT = "originals"
PROCESSED_SEGMENT = "processed"


class ImageProcessingError(Exception):
    """Source image missing, unreadable or not an accepted upload."""


def validate_upload(image_path: Union[str, Path]) -> Path:
    """Check the upload boundary rules: jpeg/jpg/png, at most 10MB."""
    path = Path(image_path)
    if path.suffix.lower() not in ALLOWED_SUFFIXES:
        raise ImageProcessingError(
            f"Unsupported image type {path.suffix!r}; expected one of {sorted(ALLOWED_SUFFIXES)}"
        )
    if not path.is_file():
        raise ImageProcessingError(f"Image not found: {path}")
    if path.stat().st_size > MAX_UPLOAD_BYTES:
        raise ImageProcessingError(f"Image {path.name} exceeds 10MB upload limit")
    return path


def processed_path_for(image_path: Union[str, Path]) -> Path:
    """Derive the output path.

    scans/originals/card.jpg -> scans/processed/card.jpg. Paths without an
    "originals" segment get a sibling "processed" directory.
    """
    path = Path(image_path)
    parts = list(path.parts)
    if ORIGINALS_SEGMENT in parts[:-1]:
        idx = len(parts) - 2 - parts[-2::-1].index(ORIGINALS_SEGMENT)
        parts[idx] = PROCESSED_SEGMENT
        return Path(*parts)
    return path.parent / PROCESSED_SEGMENT / path.name


def fit_within(size: Tuple[int, int], max_size: Tuple[int, int], allow_upscale: bool = False) -> Tuple[int, int]:
    """Scale (w, h) to fit inside max_size keeping aspect ratio."""
    width, height = size
    max_w, max_h = max_size
    if width <= max_w and height <= max_h and not allow_upscale:
        return width, height
    ratio = min(max_w / width, max_h / height)
    if not allow_upscale:
        ratio = min(ratio, 1.0)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


class ImagePreprocessor:
    """Deterministic Pillow transforms applied before OCR."""

    def __init__(self, config: ImageProcessingConfig = ImageProcessingConfig()):
        self.config = config

    def preprocess(self, image_path: Union[str, Path]) -> Path:
        source = Path(image_path)
        target = processed_path_for(source)
        try:
            with Image.open(source) as img:
                processed = self._apply(img)
        except OSError as e:
            raise ImageProcessingError(f"Cannot open image {source}: {e}") from e

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.suffix.lower() in (".jpg", ".jpeg"):
                processed.save(target, format="JPEG", quality=self.config.quality)
            else:
                processed.save(target)
        except OSError as e:
            raise ImageProcessingError(f"Cannot write processed image {target}: {e}") from e
        logger.info("Preprocessed %s -> %s (%dx%d)", source, target, *processed.size)
        return target

    def _apply(self, img: Image.Image) -> Image.Image:
        img = ImageOps.exif_transpose(img)
        img = ImageOps.grayscale(img)
        # contrast/sharpen are on a -100..100 scale; 0 means unchanged
        img = ImageEnhance.Contrast(img).enhance(1 + self.config.contrast / 100)
        img = img.filter(ImageFilter.UnsharpMask(radius=2, percent=self.config.sharpen * 10, threshold=3))
        new_size = fit_within(
            img.size,
            (self.config.max_width, self.config.max_height),
            self.config.allow_upscale,
        )
        if new_size != img.size:
            img = img.resize(new_size, Image.LANCZOS)
        return img

    # ================================================================
    # Geometry placeholders (no real corner detection yet)
    # ================================================================

    def detect_corners(self, image_path: Union[str, Path]) -> Dict[str, Tuple[int, int]]:
        """Placeholder geometry. Returns fixed corners, not a real detection."""
        return {
            "top_left": (50, 100),
            "top_right": (800, 120),
            "bottom_left": (60, 900),
            "bottom_right": (810, 920),
        }

    def correct_perspective(self, image_path: Union[str, Path], corners: Dict[str, Tuple[int, int]]) -> Path:
        """Placeholder. Returns the input path unchanged."""
        return Path(image_path)
