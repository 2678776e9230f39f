import numpy as np
import cv2
import pytest

from synapse_counter.core import PipelineConfig, SourceImage


def _binarize(ch):
    return (ch > 0).astype(np.uint8) * 255


@pytest.fixture
def binarize():
    """Pass-through preprocessing for images that are already masks."""
    return _binarize


@pytest.fixture
def mask_config():
    return PipelineConfig(pre_channel="C1", post_channel="C2",
                          min_size_pre=10, max_size_pre=400,
                          min_size_post=10, max_size_post=400)


@pytest.fixture
def overlap_image():
    # C1: 5x10 particle (area 50) inside C2: 6x10 particle (area 60)
    data = np.zeros((2, 64, 64), np.uint8)
    data[0, 20:25, 20:30] = 255
    data[1, 20:26, 20:30] = 255
    return SourceImage("overlap.tif", data)


@pytest.fixture
def disc_image():
    # Two shifted bright discs on a dark background
    pre = np.zeros((96, 96), np.uint8)
    post = np.zeros_like(pre)
    cv2.circle(pre, (40, 40), 5, 200, -1)
    cv2.circle(post, (43, 41), 5, 180, -1)
    return SourceImage("discs.tif", np.stack([pre, post]))
