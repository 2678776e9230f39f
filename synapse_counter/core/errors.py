"""
Error types raised by the analysis core.

Every per-image failure derives from SynapseCounterError so the batch
driver can skip the image, log it, and continue with the next one.
"""

from __future__ import annotations


class SynapseCounterError(Exception):
    """Base class for recoverable per-image failures."""


class ChannelNotFoundError(SynapseCounterError):
    """A configured channel tag is absent from the split source image."""

    def __init__(self, file: str, tag: str) -> None:
        super().__init__(f"{file}: channel {tag} not found")
        self.file = file
        self.tag = tag


class CollaboratorUnavailableError(SynapseCounterError):
    """An image algorithm (e.g. an auto-threshold method) cannot run."""


class ImageIOError(SynapseCounterError):
    """An image cannot be opened or saved."""


class DirectoryCreationError(SynapseCounterError):
    """An output directory cannot be created."""


class DimensionalityError(SynapseCounterError):
    """Channel dimensionality does not match the configured 2D/3D mode."""
