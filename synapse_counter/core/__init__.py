# Public API of the core package (re-export)
from .errors import (
    SynapseCounterError,
    ChannelNotFoundError,
    CollaboratorUnavailableError,
    ImageIOError,
    DirectoryCreationError,
    DimensionalityError,
)
from .params import (
    PipelineConfig,
    SizeBounds,
    IMAGE_TYPES,
    channel_choices,
    default_channels,
)
from .accumulator import ParticleAccumulator
from .morphology import split_touching_watershed
from .preprocess import (
    ChannelPreprocessor,
    THRESHOLD_METHODS,
    threshold_methods,
    resize_to_width,
    smooth,
    subtract_background,
    max_filter,
    subtract_value,
    auto_threshold,
    make_binary,
)
from .detect import (
    ParticleDetector,
    ParticleDetector2D,
    ParticleDetector3D,
    make_detector,
)
from .channels import SourceImage, split_channels, intersect
from .results import CHANNEL_TAGS, ChannelSummary, ResultRow, ResultsTable
from .pipeline import ColocalizationPipeline, PipelineState
from .io_utils import read_image, save_tiff

__all__ = [
    # errors
    "SynapseCounterError", "ChannelNotFoundError", "CollaboratorUnavailableError",
    "ImageIOError", "DirectoryCreationError", "DimensionalityError",
    # params
    "PipelineConfig", "SizeBounds", "IMAGE_TYPES", "channel_choices", "default_channels",
    # statistics
    "ParticleAccumulator",
    # preprocessing & morphology
    "ChannelPreprocessor", "THRESHOLD_METHODS", "threshold_methods", "resize_to_width", "smooth",
    "subtract_background", "max_filter", "subtract_value", "auto_threshold", "make_binary",
    "split_touching_watershed",
    # detection
    "ParticleDetector", "ParticleDetector2D", "ParticleDetector3D", "make_detector",
    # channels / results / pipeline
    "SourceImage", "split_channels", "intersect",
    "CHANNEL_TAGS", "ChannelSummary", "ResultRow", "ResultsTable",
    "ColocalizationPipeline", "PipelineState",
    # io
    "read_image", "save_tiff",
]
