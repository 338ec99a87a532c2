import pytest
from pathlib import Path

from PIL import Image

from imaging.preprocess import (
    MAX_UPLOAD_BYTES,
    ImagePreprocessor,
    ImageProcessingError,
    fit_within,
    processed_path_for,
    validate_upload,
)
from pipeline.config import ImageProcessingConfig


# ================================================================
# Paths and sizes
# ================================================================

def test_processed_path_swaps_originals_segment():
    assert processed_path_for("scans/originals/card.jpg") == Path("scans/processed/card.jpg")
    # only the innermost "originals" directory is swapped
    assert processed_path_for("originals/a/originals/card.png") == Path("originals/a/processed/card.png")


def test_processed_path_without_originals_segment():
    assert processed_path_for("uploads/card.jpg") == Path("uploads/processed/card.jpg")


@pytest.mark.parametrize("size, bounds, expected", [
    ((4000, 3000), (2048, 2048), (2048, 1536)),
    ((1000, 3000), (2048, 2048), (683, 2048)),
    ((800, 600), (2048, 2048), (800, 600)),
])
def test_fit_within_keeps_aspect_ratio(size, bounds, expected):
    assert fit_within(size, bounds) == expected


def test_fit_within_upscale():
    assert fit_within((100, 50), (400, 400), allow_upscale=True) == (400, 200)


# ================================================================
# Upload validation
# ================================================================

def test_validate_upload_accepts_scorecard(scorecard_image):
    assert validate_upload(scorecard_image) == scorecard_image


def test_validate_upload_rejects_type(tmp_path):
    path = tmp_path / "card.gif"
    path.write_bytes(b"GIF89a")
    with pytest.raises(ImageProcessingError):
        validate_upload(path)


def test_validate_upload_rejects_missing(tmp_path):
    with pytest.raises(ImageProcessingError):
        validate_upload(tmp_path / "nope.jpg")


def test_validate_upload_rejects_oversized(tmp_path):
    path = tmp_path / "big.png"
    with open(path, "wb") as f:
        f.truncate(MAX_UPLOAD_BYTES + 1)
    with pytest.raises(ImageProcessingError):
        validate_upload(path)


# ================================================================
# Preprocessing
# ================================================================

def test_preprocess_writes_grayscale_copy(scorecard_image):
    target = ImagePreprocessor().preprocess(scorecard_image)

    assert target == scorecard_image.parent.parent / "processed" / "card.jpg"
    assert target.exists()
    assert scorecard_image.exists()
    with Image.open(target) as img:
        assert img.mode == "L"
        assert img.size == (400, 300)


def test_preprocess_downscales_large_images(tmp_path):
    source = tmp_path / "originals" / "wide.png"
    source.parent.mkdir()
    Image.new("RGB", (1200, 600), color="white").save(source)

    preprocessor = ImagePreprocessor(ImageProcessingConfig(max_width=600, max_height=600))
    target = preprocessor.preprocess(source)

    with Image.open(target) as img:
        assert img.size == (600, 300)


def test_preprocess_is_deterministic(scorecard_image):
    preprocessor = ImagePreprocessor()
    first = preprocessor.preprocess(scorecard_image).read_bytes()
    second = preprocessor.preprocess(scorecard_image).read_bytes()
    assert first == second


def test_preprocess_unreadable_image(tmp_path):
    source = tmp_path / "originals" / "broken.jpg"
    source.parent.mkdir()
    source.write_bytes(b"not really a jpeg")
    with pytest.raises(ImageProcessingError):
        ImagePreprocessor().preprocess(source)


def test_preprocess_truncated_image(scorecard_image):
    data = scorecard_image.read_bytes()
    scorecard_image.write_bytes(data[: len(data) // 2])
    with pytest.raises(ImageProcessingError, match="Cannot open image"):
        ImagePreprocessor().preprocess(scorecard_image)


def test_placeholder_geometry(scorecard_image):
    preprocessor = ImagePreprocessor()
    corners = preprocessor.detect_corners(scorecard_image)
    assert set(corners) == {"top_left", "top_right", "bottom_left", "bottom_right"}
    assert preprocessor.correct_perspective(scorecard_image, corners) == scorecard_image
