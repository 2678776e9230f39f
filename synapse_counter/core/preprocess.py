"""
Channel preprocessing.

Turns one raw fluorescence channel into a binary, watershed-split mask
ready for particle detection. The order of the steps is fixed:

  1) optional resize to a target width (aspect preserved, averaging)
  2) 3x3 mean smoothing
  3) rolling-ball background subtraction
  4) maximum filter
  5) subtraction of the global mean intensity
  6) automatic threshold (named method, bright objects = foreground)
  7) binarization to {0, 255}
  8) watershed split of touching particles

Stacks (Z, Y, X) are processed plane by plane; only the mean used in
step 5 is taken over the whole stack.
"""

from __future__ import annotations
import logging
import math
from typing import Callable, Dict, List

import cv2
import numpy as np
from skimage import filters
from skimage.restoration import rolling_ball

from .errors import CollaboratorUnavailableError
from .morphology import split_touching_watershed
from .params import PipelineConfig

logger = logging.getLogger(__name__)

THRESHOLD_METHODS: Dict[str, Callable[[np.ndarray], float]] = {
    "Default": filters.threshold_isodata,
    "IsoData": filters.threshold_isodata,
    "Li": filters.threshold_li,
    "Mean": filters.threshold_mean,
    "Minimum": filters.threshold_minimum,
    "Otsu": filters.threshold_otsu,
    "Triangle": filters.threshold_triangle,
    "Yen": filters.threshold_yen,
}


def threshold_methods() -> List[str]:
    """Names accepted by `auto_threshold`."""
    return sorted(THRESHOLD_METHODS)


def resize_to_width(img: np.ndarray, width: int) -> np.ndarray:
    """Resize a plane to `width` px keeping the aspect ratio; no-op if width <= 0."""
    h, w = img.shape[:2]
    if width <= 0 or width == w:
        return img
    new_h = max(1, int(math.floor(h * width / w + 0.5)))
    interp = cv2.INTER_AREA if width < w else cv2.INTER_LINEAR
    return cv2.resize(img, (int(width), new_h), interpolation=interp)


def smooth(img: np.ndarray) -> np.ndarray:
    """3x3 mean filter."""
    return cv2.blur(img, (3, 3), borderType=cv2.BORDER_REPLICATE)


def subtract_background(img: np.ndarray, radius: float) -> np.ndarray:
    """Rolling-ball background subtraction (bright objects on a dark background)."""
    bg = rolling_ball(img, radius=float(radius))
    return np.clip(img - bg, 0, None).astype(np.float32)


def max_filter(img: np.ndarray, radius: float) -> np.ndarray:
    """Local maximum over a disc of the given radius (px)."""
    r = int(round(radius))
    if r <= 0:
        return img
    ker = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (2 * r + 1, 2 * r + 1))
    return cv2.dilate(img, ker)


def subtract_value(img: np.ndarray, value: float) -> np.ndarray:
    """Subtract a scalar, clipping at zero."""
    return np.clip(img - np.float32(value), 0, None).astype(np.float32)


def auto_threshold(img: np.ndarray, method: str) -> np.ndarray:
    """
    Threshold a plane with a named automatic method.

    Returns a uint8 mask with foreground (pixels above the threshold) = 255.
    A constant plane has no foreground.
    """
    fn = THRESHOLD_METHODS.get(method)
    if fn is None:
        raise CollaboratorUnavailableError(
            f"Auto-threshold method {method!r} is not available "
            f"(known: {', '.join(threshold_methods())})"
        )
    if img.size == 0 or float(img.min()) == float(img.max()):
        return np.zeros(img.shape, np.uint8)
    try:
        t = float(fn(img))
    except (RuntimeError, ValueError) as e:
        raise CollaboratorUnavailableError(f"{method} threshold failed: {e}") from e
    return (img > t).astype(np.uint8) * 255


def make_binary(mask: np.ndarray) -> np.ndarray:
    """Force a strict two-level uint8 image."""
    return (mask > 0).astype(np.uint8) * 255


class ChannelPreprocessor:
    """Applies the fixed transform sequence to a single channel."""

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config

    def _level(self, plane: np.ndarray) -> np.ndarray:
        c = self.config
        img = resize_to_width(plane.astype(np.float32), c.resize_width)
        img = smooth(img)
        img = subtract_background(img, c.rolling_ball_radius)
        return max_filter(img, c.max_filter_radius)

    def _segment(self, plane: np.ndarray) -> np.ndarray:
        bw = auto_threshold(plane, self.config.threshold_method)
        bw = make_binary(bw)
        return split_touching_watershed(bw)

    def process(self, channel: np.ndarray) -> np.ndarray:
        """Return the binary (uint8, 0/255) segmentation of a 2D plane or a (Z, Y, X) stack."""
        is_stack = channel.ndim == 3
        planes = list(channel) if is_stack else [channel]

        leveled = np.stack([self._level(p) for p in planes])
        mean = float(leveled.mean())
        logger.debug("Leveled channel %s: mean intensity %.4f", channel.shape, mean)
        leveled = subtract_value(leveled, mean)

        out = np.stack([self._segment(p) for p in leveled])
        return out if is_stack else out[0]

    __call__ = process
