"""
Export of the per-channel masks of an analyzed image.

Files are written as `<output_dir>/<subdir>/<filename>-<tag>.tiff` with
tags presyn, postsyn and coloc.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Union

import numpy as np

from synapse_counter.core.errors import DirectoryCreationError
from synapse_counter.core.io_utils import save_tiff

logger = logging.getLogger(__name__)


def channel_tiff_path(output_dir: Union[str, Path], file_id: str, tag: str) -> Path:
    """Path of the exported mask for `file_id` (may contain a sub-directory)."""
    rel = Path(file_id)
    return Path(output_dir) / rel.parent / f"{rel.name}-{tag}.tiff"


class ChannelExporter:
    """Channel sink that saves every mask it receives for one image."""

    def __init__(self, output_dir: Union[str, Path], file_id: str) -> None:
        self.output_dir = Path(output_dir)
        self.file_id = file_id
        self._dir_ready = False

    def _ensure_dir(self, target: Path) -> None:
        if self._dir_ready:
            return
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(f"Couldn't create {target}: {e}") from e
        self._dir_ready = True

    def __call__(self, tag: str, mask: np.ndarray) -> None:
        path = channel_tiff_path(self.output_dir, self.file_id, tag)
        self._ensure_dir(path.parent)
        save_tiff(path, mask)
        logger.debug("Saved %s", path)
