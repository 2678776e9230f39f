"""
Colocalization pipeline.

Analyzes one image at a time:

  IDLE -> CHANNELS_EXTRACTED -> PREPROCESSED -> COMBINED -> DETECTED -> ROW_EMITTED

Any failure moves the pipeline to ABORTED and propagates; no row is
emitted for that image.
"""

from __future__ import annotations
import enum
import logging
from typing import Callable, Dict, Optional

import numpy as np

from .accumulator import ParticleAccumulator
from .channels import SourceImage, intersect, split_channels
from .detect import ParticleDetector, make_detector
from .errors import ChannelNotFoundError, DimensionalityError
from .params import PipelineConfig, SizeBounds
from .preprocess import ChannelPreprocessor
from .results import CHANNEL_TAGS, ChannelSummary, ResultRow, ResultsTable

logger = logging.getLogger(__name__)

Preprocessor = Callable[[np.ndarray], np.ndarray]
ChannelSink = Callable[[str, np.ndarray], None]


class PipelineState(enum.Enum):
    IDLE = "idle"
    CHANNELS_EXTRACTED = "channels_extracted"
    PREPROCESSED = "preprocessed"
    COMBINED = "combined"
    DETECTED = "detected"
    ROW_EMITTED = "row_emitted"
    ABORTED = "aborted"


class ColocalizationPipeline:
    """
    Counts presynaptic, postsynaptic and colocalized particles of an image.

    Args:
        config: validated run parameters.
        preprocessor: callable turning a raw channel into a binary mask;
            defaults to ChannelPreprocessor(config).
        detector: particle detector; defaults to the variant matching
            `config.is_3d`. It is kept across runs of the same
            dimensionality and replaced by the default otherwise.
    """

    def __init__(
        self,
        config: PipelineConfig,
        preprocessor: Optional[Preprocessor] = None,
        detector: Optional[ParticleDetector] = None,
    ) -> None:
        self.results = ResultsTable()
        self.accumulators: Dict[str, ParticleAccumulator] = {
            tag: ParticleAccumulator() for tag in CHANNEL_TAGS
        }
        self._custom_preprocessor = preprocessor
        self._custom_detector = detector
        self.reset_for_new_run(config)

    def reset_for_new_run(self, config: PipelineConfig, clear_results: bool = False) -> None:
        """Reconfigure preprocessing, detection and size bounds for a new run."""
        self.config = config
        self.preprocessor: Preprocessor = self._custom_preprocessor or ChannelPreprocessor(config)
        ndim = 3 if config.is_3d else 2
        custom = self._custom_detector
        if custom is not None and custom.ndim != ndim:
            logger.debug("Custom %s does not fit %dD runs; using the default detector",
                         type(custom).__name__, ndim)
            custom = None
        self.detector: ParticleDetector = custom or make_detector(config.is_3d)
        self.bounds: Dict[str, SizeBounds] = {
            "presyn": config.pre_bounds,
            "postsyn": config.post_bounds,
            "coloc": config.coloc_bounds,
        }
        for acc in self.accumulators.values():
            acc.reset()
        if clear_results:
            self.results.clear()
        self.state = PipelineState.IDLE

    # ---- stages ----

    def _extract(self, image: SourceImage, file_id: str) -> Dict[str, np.ndarray]:
        channels = split_channels(image)
        out = {}
        for tag, name in (("presyn", self.config.pre_channel), ("postsyn", self.config.post_channel)):
            if name not in channels:
                raise ChannelNotFoundError(file_id, name)
            out[tag] = self._match_dims(channels[name], file_id)
        return out

    def _match_dims(self, channel: np.ndarray, file_id: str) -> np.ndarray:
        if self.config.is_3d:
            return channel if channel.ndim == 3 else channel[np.newaxis]
        if channel.ndim == 3:
            if channel.shape[0] != 1:
                raise DimensionalityError(
                    f"{file_id}: stack with {channel.shape[0]} planes in 2D mode"
                )
            return channel[0]
        return channel

    def analyze_image(self, image: SourceImage, file_id: str,
                      sink: Optional[ChannelSink] = None) -> ResultRow:
        """
        Analyze one image and append its row to `self.results`.

        `sink(tag, mask)` receives the three binary masks (presyn, postsyn,
        coloc) after detection, e.g. for export.

        Raises:
            ChannelNotFoundError: a configured channel tag is missing.
            CollaboratorUnavailableError, DimensionalityError: the image
                cannot be processed with the current settings.
        """
        self.state = PipelineState.IDLE
        try:
            raw = self._extract(image, file_id)
            self.state = PipelineState.CHANNELS_EXTRACTED

            masks = {tag: self.preprocessor(ch) for tag, ch in raw.items()}
            del raw
            self.state = PipelineState.PREPROCESSED

            masks["coloc"] = intersect(masks["presyn"], masks["postsyn"])
            self.state = PipelineState.COMBINED

            summaries = {}
            for tag in CHANNEL_TAGS:
                b = self.bounds[tag]
                acc = self.detector.detect(masks[tag], b.min_size, b.max_size, self.accumulators[tag])
                summaries[tag] = ChannelSummary.from_accumulator(acc)
                logger.debug("%s [%s]: N=%d, mean size=%.3f", file_id, tag, acc.count, acc.mean_size)
            self.state = PipelineState.DETECTED
        except Exception:
            self.state = PipelineState.ABORTED
            raise

        row = ResultRow(file=file_id, **summaries)
        self.results.append(row)
        self.state = PipelineState.ROW_EMITTED

        if sink is not None:
            for tag in CHANNEL_TAGS:
                sink(tag, masks[tag])
        return row
