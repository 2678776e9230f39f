"""
Batch driver.

Walks input files and folders, runs the colocalization pipeline on one
image at a time and isolates per-image failures: an image that cannot be
read or analyzed is logged and skipped. Cancellation is checked between
images only.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from ..addons.export import ChannelExporter
from ..core import (
    ColocalizationPipeline, DirectoryCreationError, ImageIOError, ResultRow, ResultsTable,
    SourceImage, SynapseCounterError, read_image,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItem:
    path: Path
    file_id: str  # "subdir/filename" relative to the batch root


def iter_images(root: Union[str, Path], recursive: bool = False) -> Iterator[BatchItem]:
    """Yield files under `root` in sorted order, skipping hidden entries."""
    root = Path(root)

    def walk(folder: Path, prefix: str) -> Iterator[BatchItem]:
        for entry in sorted(folder.iterdir(), key=lambda p: p.name):
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                if recursive:
                    yield from walk(entry, f"{prefix}{entry.name}/")
                continue
            yield BatchItem(entry, prefix + entry.name)

    yield from walk(root, "")


def collect_items(paths: Iterable[Union[str, Path]], recursive: bool = False) -> List[BatchItem]:
    """Expand files and folders given on the command line into batch items."""
    items: List[BatchItem] = []
    for p in map(Path, paths):
        if p.is_dir():
            items.extend(iter_images(p, recursive))
        else:
            items.append(BatchItem(p, p.name))
    return items


class BatchWorker:
    """Runs a pipeline over many images with cooperative cancellation."""

    def __init__(
        self,
        pipeline: ColocalizationPipeline,
        output_dir: Optional[Union[str, Path]] = None,
        cancel_cb: Optional[Callable[[], bool]] = None,
        progress_cb: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        self.pipeline = pipeline
        self.output_dir = Path(output_dir) if output_dir else None
        self.cancel_cb = cancel_cb
        self.progress_cb = progress_cb
        self.skipped: List[Tuple[str, str]] = []
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def _canceled(self) -> bool:
        return self._cancelled or bool(self.cancel_cb and self.cancel_cb())

    def _make_sink(self, file_id: str):
        if self.output_dir is None:
            return None
        exporter = ChannelExporter(self.output_dir, file_id)
        failed = []

        def sink(tag, mask) -> None:
            if failed:
                return
            try:
                exporter(tag, mask)
            except (DirectoryCreationError, ImageIOError) as e:
                failed.append(tag)
                logger.warning("%s: export skipped (%s)", file_id, e)

        return sink

    def process_image(self, image: SourceImage, file_id: str) -> Optional[ResultRow]:
        """Analyze an already loaded image; None if it had to be skipped."""
        try:
            return self.pipeline.analyze_image(image, file_id, sink=self._make_sink(file_id))
        except SynapseCounterError as e:
            logger.warning("%s: skipped (%s)", file_id, e)
            self.skipped.append((file_id, str(e)))
            return None

    def process_item(self, item: BatchItem) -> Optional[ResultRow]:
        try:
            image = read_image(item.path)
        except ImageIOError as e:
            logger.warning("%s", e)
            self.skipped.append((item.file_id, str(e)))
            return None
        return self.process_image(image, item.file_id)

    def run(self, items: Iterable[BatchItem]) -> ResultsTable:
        """Process items in order until done or cancelled; return the results table."""
        items = list(items)
        n = len(items)
        for i, item in enumerate(items):
            if self._canceled():
                logger.info("Cancelled: %d of %d images processed", i, n)
                break
            if self.progress_cb:
                self.progress_cb(i, n)
            logger.info("[%d/%d] %s", i + 1, n, item.file_id)
            self.process_item(item)
        else:
            if self.progress_cb:
                self.progress_cb(n, n)
        return self.pipeline.results
