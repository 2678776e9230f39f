"""
Image I/O utilities.

Loads multi-channel TIFF stacks (via tifffile) and ordinary RGB/grayscale
images (OpenCV with a Pillow fallback) into a channels-first SourceImage,
and saves masks as lossless TIFF.
"""

from __future__ import annotations
from pathlib import Path
from typing import Union

import cv2
import numpy as np
import tifffile
from PIL import Image

from .channels import SourceImage
from .errors import ImageIOError

PathLike = Union[str, Path]
TIFF_SUFFIXES = (".tif", ".tiff")


def _channels_first(arr: np.ndarray, axes: str) -> tuple[np.ndarray, str]:
    """
    Reorder an array with tifffile axes into (C, [Z,] Y, X).

    'S' (samples) and 'C' both count as channels; generic page axes
    ('Q', 'I') become channels when none are present, else Z planes.
    Other axes must be singletons.
    """
    axes = axes.upper()
    kind = "RGB" if "S" in axes and "C" not in axes and arr.shape[axes.index("S")] in (3, 4) else "Multi-channel"
    axes = axes.replace("S", "C") if "C" not in axes else axes

    for generic in "QI":
        if generic in axes:
            target = "C" if "C" not in axes else "Z"
            if target in axes:
                raise ImageIOError(f"Unsupported axes layout {axes!r}")
            axes = axes.replace(generic, target, 1)

    # Drop singleton axes we do not analyze (time, angle, ...)
    for i in reversed(range(len(axes))):
        if axes[i] not in "CZYX":
            if arr.shape[i] != 1:
                raise ImageIOError(f"Unsupported axis {axes[i]!r} of length {arr.shape[i]}")
            arr = np.take(arr, 0, axis=i)
            axes = axes[:i] + axes[i + 1:]

    if "Y" not in axes or "X" not in axes:
        raise ImageIOError(f"Image has no Y/X plane (axes {axes!r})")
    if "C" not in axes:
        arr, axes = arr[np.newaxis], "C" + axes

    order = [axes.index(a) for a in "CZYX" if a in axes]
    arr = np.transpose(arr, order)
    if kind == "RGB":
        arr = arr[:3]
    return arr, kind


def _read_tiff(path: Path) -> SourceImage:
    with tifffile.TiffFile(str(path)) as tif:
        series = tif.series[0]
        arr = series.asarray()
        axes = series.axes
    data, kind = _channels_first(arr, axes)
    return SourceImage(path.name, data, kind)


def _read_other(path: Path) -> SourceImage:
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        # Fallback: use Pillow if OpenCV fails
        try:
            pil = Image.open(path)
        except OSError as e:
            raise ImageIOError(f"Couldn't open '{path}': {e}") from e
        if pil.mode not in ("L", "I;16", "I;16B", "I;16L"):
            pil = pil.convert("RGB")
        img = np.array(pil)
        if img.ndim == 3:
            return SourceImage(path.name, np.moveaxis(img, -1, 0), "RGB")
        return SourceImage(path.name, img[np.newaxis], "Multi-channel")

    if img.ndim == 2:
        return SourceImage(path.name, img[np.newaxis], "Multi-channel")
    # OpenCV keeps BGR(A)
    rgb = cv2.cvtColor(img[:, :, :3], cv2.COLOR_BGR2RGB)
    return SourceImage(path.name, np.moveaxis(rgb, -1, 0), "RGB")


def read_image(path: PathLike) -> SourceImage:
    """Read an image file into a channels-first SourceImage."""
    p = Path(path)
    if not p.is_file():
        raise ImageIOError(f"Couldn't open '{p}': not a file")
    if p.suffix.lower() in TIFF_SUFFIXES:
        try:
            return _read_tiff(p)
        except (tifffile.TiffFileError, ValueError, OSError) as e:
            raise ImageIOError(f"Couldn't open '{p}': {e}") from e
    return _read_other(p)


def save_tiff(path: PathLike, arr: np.ndarray) -> None:
    """Write a mask or stack as a lossless TIFF."""
    try:
        tifffile.imwrite(str(path), np.ascontiguousarray(arr))
    except OSError as e:
        raise ImageIOError(f"Couldn't save '{path}': {e}") from e
