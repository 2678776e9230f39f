"""
Analysis parameter data structures.

Defines the immutable parameter bundle consumed by the colocalization
pipeline, the particle size bounds per particle class, and the defaults
of the synapse counter.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

IMAGE_TYPES: Tuple[str, ...] = ("Multi-channel", "RGB")
CHANNEL_CHOICES: Tuple[str, ...] = ("C1", "C2", "C3", "C4", "C5")
COLOR_CHOICES: Tuple[str, ...] = ("green", "blue", "red")

DEF_IMAGE_TYPE = IMAGE_TYPES[0]
DEF_ROLLING_BALL_RADIUS = 10.0
DEF_MAX_FILTER_RADIUS = 2.0
DEF_THRESHOLD_METHOD = "Otsu"
DEF_MIN_SIZE = 10.0
DEF_MAX_SIZE = 400.0
DEF_RESIZE_WIDTH = 0
DEF_PRE_CHANNEL = CHANNEL_CHOICES[0]
DEF_POST_CHANNEL = CHANNEL_CHOICES[2]
DEF_PRE_CHANNEL_RGB = COLOR_CHOICES[0]
DEF_POST_CHANNEL_RGB = COLOR_CHOICES[1]


@dataclass(frozen=True)
class SizeBounds:
    """Inclusive particle size range (px² in 2D, voxels in 3D)."""
    min_size: float
    max_size: float


def channel_choices(image_type: str) -> Tuple[str, ...]:
    """Return the valid channel tags for an image type."""
    return COLOR_CHOICES if image_type == "RGB" else CHANNEL_CHOICES


def default_channels(image_type: str) -> Tuple[str, str]:
    """Return the default (presynaptic, postsynaptic) tags for an image type."""
    if image_type == "RGB":
        return DEF_PRE_CHANNEL_RGB, DEF_POST_CHANNEL_RGB
    return DEF_PRE_CHANNEL, DEF_POST_CHANNEL


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration parameters for channel preprocessing and particle analysis."""

    # Channels
    image_type: str = DEF_IMAGE_TYPE
    pre_channel: str = DEF_PRE_CHANNEL
    post_channel: str = DEF_POST_CHANNEL

    # Preprocessing
    resize_width: int = DEF_RESIZE_WIDTH
    rolling_ball_radius: float = DEF_ROLLING_BALL_RADIUS
    max_filter_radius: float = DEF_MAX_FILTER_RADIUS
    threshold_method: str = DEF_THRESHOLD_METHOD

    # Size limits
    min_size_pre: float = DEF_MIN_SIZE
    max_size_pre: float = DEF_MAX_SIZE
    min_size_post: float = DEF_MIN_SIZE
    max_size_post: float = DEF_MAX_SIZE

    # Dimensionality
    is_3d: bool = False

    @property
    def pre_bounds(self) -> SizeBounds:
        return SizeBounds(self.min_size_pre, self.max_size_pre)

    @property
    def post_bounds(self) -> SizeBounds:
        return SizeBounds(self.min_size_post, self.max_size_post)

    @property
    def coloc_bounds(self) -> SizeBounds:
        """Colocalized particles may be a third of the smaller minimum."""
        return SizeBounds(
            min(self.min_size_pre, self.min_size_post) / 3.0,
            max(self.max_size_pre, self.max_size_post),
        )

    def validate(self) -> "PipelineConfig":
        """Raise ValueError for inconsistent settings; return self otherwise."""
        if self.image_type not in IMAGE_TYPES:
            raise ValueError(f"Unknown image type: {self.image_type!r}")
        choices = channel_choices(self.image_type)
        for name, tag in (("presynaptic", self.pre_channel), ("postsynaptic", self.post_channel)):
            if tag not in choices:
                raise ValueError(
                    f"Invalid {name} channel {tag!r} for {self.image_type} images "
                    f"(expected one of {', '.join(choices)})"
                )
        if self.pre_channel == self.post_channel:
            raise ValueError("The two channels are not allowed to be identical")
        if self.rolling_ball_radius <= 0:
            raise ValueError("Rolling ball radius must be positive")
        if self.max_filter_radius < 0:
            raise ValueError("Maximum filter radius must not be negative")
        for name, b in (("presynaptic", self.pre_bounds), ("postsynaptic", self.post_bounds)):
            if b.min_size < 0 or b.max_size < b.min_size:
                raise ValueError(f"Invalid {name} particle size range: {b.min_size}..{b.max_size}")
        return self
