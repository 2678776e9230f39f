"""
Particle detection on binary masks.

Two interchangeable strategies share one interface:

- ParticleDetector2D: 8-connected components, holes counted as part of
  the particle, particles touching the image edge excluded;
- ParticleDetector3D: 26-connected voxel clusters, sized in voxels.

Each qualifying particle is passed to a ParticleAccumulator; no
per-particle list is built.
"""

from __future__ import annotations
import math
from abc import ABC, abstractmethod

import cv2
import numpy as np
from scipy import ndimage as ndi

from .accumulator import ParticleAccumulator
from .errors import DimensionalityError


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class ParticleDetector(ABC):
    """Size-filtered particle analysis feeding an accumulator."""

    ndim: int = 2

    def detect(
        self,
        bw: np.ndarray,
        min_size: float,
        max_size: float,
        accumulator: ParticleAccumulator,
        min_circ: float = 0.0,
        max_circ: float = 1.0,
    ) -> ParticleAccumulator:
        """Reset `accumulator`, then record every particle of `bw` within the bounds."""
        accumulator.reset()
        if bw.ndim != self.ndim:
            raise DimensionalityError(
                f"{type(self).__name__} expects a {self.ndim}D mask, got shape {bw.shape}"
            )
        self._analyze(bw, min_size, max_size, accumulator, min_circ, max_circ)
        return accumulator

    @abstractmethod
    def _analyze(self, bw, min_size, max_size, accumulator, min_circ, max_circ) -> None:
        ...


class ParticleDetector2D(ParticleDetector):
    ndim = 2

    def _analyze(self, bw, min_size, max_size, accumulator, min_circ, max_circ) -> None:
        obj = (bw > 0).astype(np.uint8)
        H, W = obj.shape
        num, labels, stats, _ = cv2.connectedComponentsWithStats(obj, connectivity=8)
        check_circ = min_circ > 0.0 or max_circ < 1.0
        # Pixels already covered by a (hole-filled) particle; labels follow
        # raster order, so an enclosing particle comes before its islands
        consumed = np.zeros(obj.shape, bool)

        for i in range(1, num):
            x, y, w, h = (
                stats[i, cv2.CC_STAT_LEFT],
                stats[i, cv2.CC_STAT_TOP],
                stats[i, cv2.CC_STAT_WIDTH],
                stats[i, cv2.CC_STAT_HEIGHT],
            )
            roi = labels[y:y + h, x:x + w] == i
            seen = consumed[y:y + h, x:x + w]
            if seen[roi].any():
                continue
            filled = ndi.binary_fill_holes(roi)
            seen |= filled

            # Edge particles
            if x == 0 or y == 0 or x + w == W or y + h == H:
                continue

            area = float(filled.sum())
            if area < min_size or area > max_size:
                continue

            if check_circ:
                circ = _circularity(filled)
                if circ < min_circ or circ > max_circ:
                    continue

            accumulator.record(area)


def _circularity(mask: np.ndarray) -> float:
    """4πA/P² of the outer contour, capped at 1."""
    cnts, _ = cv2.findContours(mask.astype(np.uint8), cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)
    if not cnts:
        return 0.0
    cnt = max(cnts, key=cv2.contourArea)
    P = float(cv2.arcLength(cnt, True))
    if P <= 0:
        return 1.0
    return min(1.0, (4.0 * math.pi * float(mask.sum())) / (P * P))


class ParticleDetector3D(ParticleDetector):
    """
    Voxel-cluster counter. Circularity bounds are accepted and ignored.

    Clusters touching the stack border are kept unless `exclude_edges` is set.
    """
    ndim = 3

    def __init__(self, exclude_edges: bool = False) -> None:
        self.exclude_edges = exclude_edges

    def _analyze(self, bw, min_size, max_size, accumulator, min_circ, max_circ) -> None:
        lo, hi = round_half_up(min_size), round_half_up(max_size)
        labels, num = ndi.label(bw > 0, structure=np.ones((3, 3, 3), bool))
        if num == 0:
            return
        sizes = np.bincount(labels.ravel(), minlength=num + 1)

        edge = set()
        if self.exclude_edges:
            for axis in range(3):
                edge.update(np.unique(np.take(labels, 0, axis=axis)).tolist())
                edge.update(np.unique(np.take(labels, -1, axis=axis)).tolist())

        for lab in range(1, num + 1):
            if lab in edge:
                continue
            size = int(sizes[lab])
            if lo <= size <= hi:
                accumulator.record(size)


def make_detector(is_3d: bool) -> ParticleDetector:
    """Pick the detector variant for a run."""
    return ParticleDetector3D() if is_3d else ParticleDetector2D()
