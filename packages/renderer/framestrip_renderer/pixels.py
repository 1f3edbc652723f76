"""Frame normalization, region helpers and synthetic test frames."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import numpy as np
from PIL import Image

PATTERN_NAMES = (
    "black",
    "white",
    "red",
    "green",
    "blue",
    "quadrants",
    "h-gradient",
    "v-gradient",
    "checkerboard",
)

_SOLIDS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 255, 0),
    "blue": (0, 0, 255),
}


def normalize_frame(frame: np.ndarray) -> np.ndarray:
    """Return ``frame`` as opaque RGBA uint8.

    A writeable ``(H, W, 4)`` uint8 frame is normalized in place and returned
    as the same object; other shapes and dtypes produce a new array.
    """
    if not isinstance(frame, np.ndarray):
        raise ValueError(f"Expected numpy frame, got {type(frame).__name__}")

    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)

    if frame.ndim == 2:
        frame = np.repeat(frame[:, :, None], 3, axis=2)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported frame shape: {frame.shape}")

    if frame.shape[2] == 3:
        alpha = np.full(frame.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([frame, alpha], axis=2)

    if not frame.flags.writeable:
        frame = frame.copy()
    frame[..., 3] = 255
    return frame


def top_region(frame: np.ndarray, height: int) -> np.ndarray:
    return frame[: max(0, height)]


def vconcat(top: np.ndarray, bottom: np.ndarray) -> np.ndarray:
    if top.shape[1] != bottom.shape[1]:
        raise ValueError(f"Width mismatch: {top.shape[1]} != {bottom.shape[1]}")
    return np.concatenate([top, bottom], axis=0)


@contextmanager
def region_canvas(region: np.ndarray) -> Iterator[Image.Image]:
    """Expose a numpy region as a Pillow image and write it back on exit."""
    image = Image.fromarray(np.ascontiguousarray(region))
    yield image
    region[...] = np.asarray(image)


def build_test_pattern(name: str, width: int, height: int) -> np.ndarray:
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[..., 3] = 255
    rgb = frame[..., :3]

    if name in _SOLIDS:
        rgb[...] = _SOLIDS[name]
    elif name == "quadrants":
        hw, hh = width // 2, height // 2
        rgb[:hh, :hw] = (255, 0, 0)
        rgb[:hh, hw:] = (0, 255, 0)
        rgb[hh:, :hw] = (0, 0, 255)
        rgb[hh:, hw:] = (255, 255, 255)
    elif name == "h-gradient":
        ramp = (255 * np.arange(width) / max(width - 1, 1)).astype(np.uint8)
        rgb[...] = ramp[None, :, None]
    elif name == "v-gradient":
        ramp = (255 * np.arange(height) / max(height - 1, 1)).astype(np.uint8)
        rgb[...] = ramp[:, None, None]
    elif name == "checkerboard":
        ys, xs = np.indices((height, width))
        light = (xs // 24 + ys // 24) % 2 == 0
        rgb[light] = 255
    else:
        raise ValueError(f"Unknown pattern: {name}")
    return frame
