"""
Tests for the frame compositor.

Tests cover:
- Overlay switches per mode
- Saturating composition of background and overlays
- Critical curve, caustic, convergence and source marker overlays
- Overlay-only redraws reusing the raytraced background
- Fall-off of the deflection outside the lens area
"""

import math

import numpy as np
import pytest
import torch

from config import CAUSTIC_COLOR, SOURCE_MARKER_GRAY, WHITE
from lensing_system import Lens, Source
from renderer import FrameCompositor, composite_pixels, overlay_flags
from shared_utils import RowPartitionedPool


@pytest.fixture
def screen(stub_lens_factory, gradient_image, pool):
    """10x10 screen, 6x6 stub lens with origin (2, 2), source out of view."""
    lens = stub_lens_factory(6, 6, 5, 5)
    source = Source(gradient_image, 100, 100)
    return FrameCompositor(lens, source, 10, 10, pool=pool)


class TestOverlayFlags:
    """Tests for overlay_flags."""

    @pytest.mark.parametrize("mode, expected", [
        (0, (False, False, False)),
        (1, (False, True, True)),
        (2, (True, False, True)),
        (3, (True, False, True)),
        (4, (True, True, True)),
    ])
    def test_modes(self, mode, expected):
        assert overlay_flags(mode) == expected


class TestCompositePixels:
    """Tests for composite_pixels."""

    def test_adds_to_every_channel(self):
        lensed = torch.tensor([[[10, 20, 30]]], dtype=torch.uint8)
        overlay = torch.tensor([[5]], dtype=torch.int32)

        assert composite_pixels(lensed, overlay).tolist() == [[[15, 25, 35]]]

    def test_saturates(self):
        lensed = torch.tensor([[[200, 0, 250]]], dtype=torch.uint8)
        overlay = torch.tensor([[100]], dtype=torch.int32)

        assert composite_pixels(lensed, overlay).tolist() == [[[255, 100, 255]]]


# =============================================================================
# Overlays
# =============================================================================


class TestOverlays:
    """Tests for the overlay drawing of FrameCompositor.render."""

    def test_curve_pixel_white_on_overlay_redraw(self, screen):
        screen.lens.cc_map[1, 1] = 255
        screen.lens.caustic_map[1, 1] = 255

        frame = screen.render(2, recompute_lensed=False)

        assert tuple(frame[3, 3].tolist()) == WHITE

    def test_caustic_color_on_full_redraw(self, screen):
        screen.lens.cc_map[1, 1] = 255
        screen.lens.caustic_map[1, 1] = 255

        frame = screen.render(2)

        assert tuple(frame[3, 3].tolist()) == CAUSTIC_COLOR

    def test_antialiased_curve_is_added(self, screen):
        screen.lens.cc_map[1, 1] = 100

        frame = screen.render(2)

        assert frame[3, 3].tolist() == [100, 100, 100]
        assert frame[2, 2].tolist() == [0, 0, 0]

    def test_no_overlays_in_mode_0(self, screen):
        screen.lens.cc_map[:] = 255
        screen.lens.caustic_map[:] = 255
        screen.lens.kappa8u[:] = 80

        frame = screen.render(0)

        assert torch.all(frame == 0)

    def test_convergence_only_in_mode_1(self, screen):
        screen.lens.caustic_map[2, 2] = 255
        screen.lens.kappa8u[2, 2] = 50

        frame = screen.render(1)

        assert frame[4, 4].tolist() == [50, 50, 50]
        assert int(frame.sum()) == 150

    def test_overlays_saturate(self, screen):
        screen.lens.kappa8u[0, 0] = 200
        screen.lens.cc_map[0, 0] = 100

        frame = screen.render(4)

        assert frame[2, 2].tolist() == [255, 255, 255]

    def test_overlays_only_inside_lens(self, screen):
        screen.lens.kappa8u[:] = 30

        frame = screen.render(1)

        assert torch.all(frame[2:8, 2:8] == 30)
        assert torch.all(frame[:2] == 0)
        assert torch.all(frame[8:] == 0)
        assert torch.all(frame[:, :2] == 0)
        assert torch.all(frame[:, 8:] == 0)

    def test_source_marker(self, screen):
        screen.source.move(5, 5)

        frame = screen.render(2)

        assert frame[5, 5].tolist() == [SOURCE_MARKER_GRAY] * 3

    def test_no_source_marker_in_mode_1(self, screen, gradient_image):
        screen.source.move(5, 5)

        frame = screen.render(1)

        assert frame[5, 5].tolist() == gradient_image[5, 6].tolist()


# =============================================================================
# Background
# =============================================================================


class TestBackground:
    """Tests for the raytraced background."""

    def test_undeflected_source(self, screen, gradient_image):
        """Source origin (-1, 0): screen pixel (x, y) shows source pixel (x + 1, y)."""
        screen.source.move(5, 5)

        frame = screen.render(0)

        assert torch.equal(frame, torch.from_numpy(gradient_image[:, 1:11]))

    def test_overlay_redraw_keeps_background(self, screen, gradient_image):
        screen.source.move(5, 5)
        screen.render(0)

        screen.source.move(100, 100)
        kept = screen.render(0, recompute_lensed=False)
        assert torch.equal(kept, torch.from_numpy(gradient_image[:, 1:11]))

        redrawn = screen.render(0)
        assert torch.all(redrawn == 0)

    def test_falloff_outside_lens(self, stub_lens_factory, gradient_image):
        lens = stub_lens_factory(6, 6, 5, 5)
        source = Source(gradient_image, 100, 100)
        compositor = FrameCompositor(lens, source, 10, 10, pool=RowPartitionedPool(1))

        compositor.render(0)

        assert len(lens.scales) == 1
        scale = lens.scales[0]
        assert scale.shape == (10, 10)
        assert scale[0, 0].item() == pytest.approx(math.exp(-4. / 3.))
        assert scale[9, 5].item() == pytest.approx(math.exp(-2. / 3.))
        assert torch.all(scale[2:8, 2:8] == 1.)

    def test_rows_rendered_by_several_workers(self, stub_lens_factory, gradient_image):
        lens = stub_lens_factory(6, 6, 5, 5)
        source = Source(gradient_image, 5, 5)
        serial = FrameCompositor(lens, source, 10, 10, pool=RowPartitionedPool(1)).render(3)
        parallel = FrameCompositor(lens, source, 10, 10, pool=RowPartitionedPool(4)).render(3)

        assert torch.equal(serial, parallel)


class TestWithRealLens:
    """FrameCompositor together with a real Lens."""

    def test_empty_lens_shows_source(self, gradient_image, pool):
        lens = Lens(np.zeros((10, 10)), 5, 5, pool=pool, verbose=False)
        source = Source(gradient_image, 5, 5)

        frame = FrameCompositor(lens, source, 10, 10, pool=pool).render(0)

        assert frame.dtype == torch.uint8
        assert torch.equal(frame, torch.from_numpy(gradient_image[:, 1:11]))

    def test_point_mass_changes_image(self, gradient_image, pool):
        kappa = np.zeros((10, 10))
        kappa[5, 5] = 3.0
        lens = Lens(kappa, 5, 5, pool=pool, verbose=False)
        source = Source(gradient_image, 5, 5)

        frame = FrameCompositor(lens, source, 10, 10, pool=pool).render(0)

        assert not torch.equal(frame, torch.from_numpy(gradient_image[:, 1:11]))
