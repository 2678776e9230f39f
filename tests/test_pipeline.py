import math

import numpy as np
import pytest

from synapse_counter.core import (
    ChannelNotFoundError, ColocalizationPipeline, DimensionalityError, PipelineConfig,
    ParticleDetector3D, PipelineState, ResultsTable, SourceImage, intersect, split_channels,
)


def test_overlapping_particles_end_to_end(mask_config, overlap_image, binarize):
    pipe = ColocalizationPipeline(mask_config, preprocessor=binarize)
    row = pipe.analyze_image(overlap_image, "overlap.tif")
    assert (row.presyn.count, row.presyn.mean_size) == (1, 50)
    assert (row.postsyn.count, row.postsyn.mean_size) == (1, 60)
    assert row.coloc.count == 1 and row.coloc.mean_size <= 50
    assert pipe.results.rows == (row,)
    assert pipe.state is PipelineState.ROW_EMITTED


def test_missing_channel_emits_no_row(overlap_image, binarize):
    pipe = ColocalizationPipeline(PipelineConfig(pre_channel="C1", post_channel="C3"), preprocessor=binarize)
    with pytest.raises(ChannelNotFoundError) as exc:
        pipe.analyze_image(overlap_image, "overlap.tif")
    assert exc.value.tag == "C3"
    assert len(pipe.results) == 0
    assert pipe.state is PipelineState.ABORTED


def test_empty_channels_give_nan_means(mask_config, binarize):
    img = SourceImage("blank.tif", np.zeros((2, 32, 32), np.uint8))
    row = ColocalizationPipeline(mask_config, preprocessor=binarize).analyze_image(img, "blank.tif")
    assert row.presyn.count == row.postsyn.count == row.coloc.count == 0
    assert math.isnan(row.coloc.mean_size)


def test_sink_receives_three_masks(mask_config, overlap_image, binarize):
    got = {}
    ColocalizationPipeline(mask_config, preprocessor=binarize).analyze_image(
        overlap_image, "overlap.tif", sink=lambda tag, m: got.setdefault(tag, m))
    assert list(got) == ["presyn", "postsyn", "coloc"]
    assert (got["coloc"] > 0).sum() == 50


def test_rgb_channels(binarize):
    data = np.zeros((3, 40, 40), np.uint8)
    data[1, 10:20, 10:20] = 255   # green
    data[2, 12:20, 10:20] = 255   # blue
    img = SourceImage("rgb.png", data, "RGB")
    assert set(split_channels(img)) == {"red", "green", "blue"}
    cfg = PipelineConfig(image_type="RGB", pre_channel="green", post_channel="blue")
    row = ColocalizationPipeline(cfg, preprocessor=binarize).analyze_image(img, "rgb.png")
    assert (row.presyn.count, row.presyn.mean_size) == (1, 100)
    assert (row.coloc.count, row.coloc.mean_size) == (1, 80)


def test_3d_stack(binarize):
    data = np.zeros((2, 4, 32, 32), np.uint8)
    data[0, 1:3, 5:10, 5:10] = 255    # 50 voxels
    data[1, 1:3, 5:10, 7:12] = 255    # 50 voxels, 30 shared
    cfg = PipelineConfig(pre_channel="C1", post_channel="C2", is_3d=True)
    row = ColocalizationPipeline(cfg, preprocessor=binarize).analyze_image(SourceImage("s.tif", data), "s.tif")
    assert (row.presyn.count, row.presyn.mean_size) == (1, 50)
    assert (row.coloc.count, row.coloc.mean_size) == (1, 30)


def test_stack_rejected_in_2d_mode(mask_config, binarize):
    img = SourceImage("s.tif", np.zeros((2, 3, 16, 16), np.uint8))
    pipe = ColocalizationPipeline(mask_config, preprocessor=binarize)
    with pytest.raises(DimensionalityError):
        pipe.analyze_image(img, "s.tif")
    assert len(pipe.results) == 0


def test_reset_for_new_run_switches_detector(mask_config):
    pipe = ColocalizationPipeline(mask_config)
    assert pipe.detector.ndim == 2
    pipe.reset_for_new_run(PipelineConfig(pre_channel="C1", post_channel="C2", is_3d=True))
    assert pipe.detector.ndim == 3
    assert pipe.bounds["coloc"].min_size == pytest.approx(10 / 3)
    assert pipe.state is PipelineState.IDLE


def test_full_preprocessing_on_discs(disc_image):
    cfg = PipelineConfig(pre_channel="C1", post_channel="C2")
    row = ColocalizationPipeline(cfg).analyze_image(disc_image, "discs.tif")
    assert row.presyn.count == 1 and row.postsyn.count == 1 and row.coloc.count == 1
    assert row.coloc.mean_size <= min(row.presyn.mean_size, row.postsyn.mean_size)


def test_intersect_is_logical_and():
    a = np.array([[0, 255], [255, 255]], np.uint8)
    b = np.array([[255, 0], [255, 1]], np.uint8)
    assert intersect(a, b).tolist() == [[0, 0], [255, 255]]


def test_results_table_columns():
    assert ResultsTable.columns() == [
        "File", "Presyn. N", "Presyn. mean size", "Postsyn. N", "Postsyn. mean size",
        "Coloc. N", "Coloc. mean size",
    ]


def test_custom_detector_replaced_when_dimensionality_changes(mask_config, overlap_image, binarize):
    from dataclasses import replace
    det3d = ParticleDetector3D(exclude_edges=True)
    cfg3d = replace(mask_config, is_3d=True)
    pipe = ColocalizationPipeline(cfg3d, preprocessor=binarize, detector=det3d)
    assert pipe.detector is det3d

    pipe.reset_for_new_run(mask_config)
    assert pipe.detector.ndim == 2
    assert pipe.analyze_image(overlap_image, "o.tif").presyn.count == 1

    pipe.reset_for_new_run(cfg3d)
    assert pipe.detector is det3d
