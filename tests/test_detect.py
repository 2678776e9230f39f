import numpy as np
import cv2
import pytest

from synapse_counter.core import (
    DimensionalityError, ParticleAccumulator, ParticleDetector2D, ParticleDetector3D, make_detector,
)


def test_size_filter_2d():
    bw = np.zeros((100, 100), np.uint8)
    bw[10:15, 10:20] = 255     # 50
    bw[40:60, 40:60] = 255     # 400
    bw[80:82, 80:82] = 255     # 4 -> too small
    acc = ParticleDetector2D().detect(bw, 10, 400, ParticleAccumulator())
    assert acc.count == 2
    assert acc.total_size == 450


def test_edge_particles_excluded_2d():
    bw = np.zeros((50, 50), np.uint8)
    bw[0:10, 20:30] = 255      # touches top edge
    bw[20:30, 40:50] = 255     # touches right edge
    bw[20:25, 10:20] = 255     # interior, 50
    acc = ParticleDetector2D().detect(bw, 1, 1000, ParticleAccumulator())
    assert acc.count == 1 and acc.total_size == 50


def test_holes_count_as_area_2d():
    bw = np.zeros((40, 40), np.uint8)
    bw[10:20, 10:20] = 255
    bw[13:17, 13:17] = 0
    acc = ParticleDetector2D().detect(bw, 1, 1000, ParticleAccumulator())
    assert acc.count == 1 and acc.total_size == 100


def test_island_inside_hole_counted_once_2d():
    bw = np.zeros((60, 60), np.uint8)
    bw[10:40, 10:40] = 255     # 30x30 ring ...
    bw[14:36, 14:36] = 0       # ... with a 22x22 hole
    bw[20:30, 20:30] = 255     # 10x10 island inside the hole
    acc = ParticleDetector2D().detect(bw, 1, 10000, ParticleAccumulator())
    assert acc.count == 1 and acc.total_size == 900


def test_island_of_edge_particle_not_counted_2d():
    bw = np.zeros((40, 40), np.uint8)
    bw[0:30, 5:35] = 255       # touches the top edge
    bw[4:26, 9:31] = 0
    bw[10:20, 15:25] = 255     # island inside it
    acc = ParticleDetector2D().detect(bw, 1, 10000, ParticleAccumulator())
    assert acc.count == 0


def test_circularity_bounds_2d():
    bw = np.zeros((100, 100), np.uint8)
    cv2.circle(bw, (30, 30), 8, 255, -1)
    bw[70:73, 20:60] = 255     # thin bar
    det = ParticleDetector2D()
    assert det.detect(bw, 1, 1000, ParticleAccumulator()).count == 2
    assert det.detect(bw, 1, 1000, ParticleAccumulator(), min_circ=0.5).count == 1


def test_detect_resets_accumulator():
    acc = ParticleAccumulator()
    acc.record(123)
    ParticleDetector2D().detect(np.zeros((20, 20), np.uint8), 1, 100, acc)
    assert acc.count == 0 and acc.total_size == 0


def test_2d_detector_rejects_stack():
    with pytest.raises(DimensionalityError):
        ParticleDetector2D().detect(np.zeros((2, 8, 8), np.uint8), 1, 10, ParticleAccumulator())


@pytest.fixture
def cubes():
    vol = np.zeros((10, 20, 20), np.uint8)
    vol[2:5, 2:5, 2:5] = 255      # 27 voxels
    vol[6:8, 10:12, 10:12] = 255  # 8 voxels
    return vol


def test_voxel_clusters_3d(cubes):
    det = ParticleDetector3D()
    acc = det.detect(cubes, 5, 100, ParticleAccumulator())
    assert acc.count == 2 and acc.total_size == 35
    assert det.detect(cubes, 10, 100, ParticleAccumulator()).count == 1


def test_size_bounds_round_half_up_3d(cubes):
    det = ParticleDetector3D()
    # 8.5 -> 9 excludes the 8-voxel cube; 26.5 -> 27 keeps the 27-voxel cube
    acc = det.detect(cubes, 8.5, 26.5, ParticleAccumulator())
    assert acc.count == 1 and acc.total_size == 27


def test_circularity_ignored_3d(cubes):
    det = ParticleDetector3D()
    a = det.detect(cubes, 1, 100, ParticleAccumulator(), 0.0, 1.0)
    b = det.detect(cubes, 1, 100, ParticleAccumulator(), 0.9, 0.95)
    assert (a.count, a.total_size, a.sum_squares) == (b.count, b.total_size, b.sum_squares)


def test_diagonal_voxels_connected_3d():
    vol = np.zeros((5, 5, 5), np.uint8)
    vol[1, 1, 1] = vol[2, 2, 2] = 255
    acc = ParticleDetector3D().detect(vol, 1, 10, ParticleAccumulator())
    assert acc.count == 1 and acc.total_size == 2


def test_edge_clusters_3d():
    vol = np.zeros((6, 10, 10), np.uint8)
    vol[0:2, 4:6, 4:6] = 255      # touches the first plane
    assert ParticleDetector3D().detect(vol, 1, 100, ParticleAccumulator()).count == 1
    assert ParticleDetector3D(exclude_edges=True).detect(vol, 1, 100, ParticleAccumulator()).count == 0


def test_make_detector():
    assert isinstance(make_detector(False), ParticleDetector2D)
    assert isinstance(make_detector(True), ParticleDetector3D)
