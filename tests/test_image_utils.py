"""Unit tests for upload validation and storage."""

import os

import pytest

from config import MAX_IMAGE_SIZE
from errors import ValidationError
from utils.image_utils import generate_image_filename, save_image, validate_image


@pytest.mark.parametrize(
    "filename, content_type, expected",
    [
        ("leaf.jpg", "image/jpeg", ".jpg"),
        ("leaf.JPEG", "image/jpeg", ".jpeg"),
        ("leaf.png", "image/png", ".png"),
        ("leaf.gif", "image/gif", ".gif"),
    ],
)
def test_allowed_images(filename, content_type, expected):
    assert validate_image(filename, content_type, 1024) == expected


@pytest.mark.parametrize(
    "filename, content_type",
    [
        ("leaf.webp", "image/webp"),
        ("leaf.png", "text/plain"),
        ("leaf.png", None),
        (None, "image/png"),
        ("notes.txt", "image/png"),
    ],
)
def test_disallowed_images(filename, content_type):
    with pytest.raises(ValidationError):
        validate_image(filename, content_type, 1024)


def test_size_limit():
    assert validate_image("leaf.png", "image/png", MAX_IMAGE_SIZE) == ".png"
    with pytest.raises(ValidationError):
        validate_image("leaf.png", "image/png", MAX_IMAGE_SIZE + 1)


def test_generated_filenames_are_unique():
    names = {generate_image_filename(".png") for _ in range(100)}
    assert len(names) == 100
    assert all(name.startswith("scan-") and name.endswith(".png") for name in names)


def test_save_image(tmp_path):
    upload_dir = str(tmp_path / "nested" / "uploads")
    filename, path = save_image(b"data", upload_dir, ".gif")
    assert path == os.path.join(upload_dir, filename)
    with open(path, "rb") as f:
        assert f.read() == b"data"
