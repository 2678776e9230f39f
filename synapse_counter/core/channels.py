"""
Source images and channel handling.

A SourceImage keeps its pixel data channels-first: (C, Y, X) for 2D
images or (C, Z, Y, X) for stacks. Splitting names the channels the way
the user refers to them: C1..Cn for multi-channel images and
red/green/blue for RGB images.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

import numpy as np

RGB_NAMES = ("red", "green", "blue")


@dataclass
class SourceImage:
    """Multi-channel or RGB raster with channels on the first axis."""
    name: str
    data: np.ndarray
    kind: str = "Multi-channel"

    def __post_init__(self) -> None:
        if self.data.ndim not in (3, 4):
            raise ValueError(f"Expected (C, Y, X) or (C, Z, Y, X) data, got shape {self.data.shape}")

    @property
    def n_channels(self) -> int:
        return int(self.data.shape[0])

    @property
    def is_stack(self) -> bool:
        return self.data.ndim == 4


def split_channels(image: SourceImage) -> Dict[str, np.ndarray]:
    """Split a source image into named single-channel images."""
    if image.kind == "RGB":
        return {name: image.data[i] for i, name in enumerate(RGB_NAMES[: image.n_channels])}
    return {f"C{i + 1}": image.data[i] for i in range(image.n_channels)}


def intersect(pre: np.ndarray, post: np.ndarray) -> np.ndarray:
    """Pixel-wise (or voxel-wise) logical AND of two binary masks, as 0/255."""
    if pre.shape != post.shape:
        raise ValueError(f"Channel shapes differ: {pre.shape} vs {post.shape}")
    return np.logical_and(pre > 0, post > 0).astype(np.uint8) * 255
