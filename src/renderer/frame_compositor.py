import cv2
import torch

from config import WHITE, CAUSTIC_COLOR, SOURCE_MARKER_RADIUS, SOURCE_MARKER_GRAY
from shared_utils import RowPartitionedPool, relocate_and_falloff


def overlay_flags(overlay_mode):
    """
        Overlay switches for a mode: 0 none, 1 convergence, 2 tangential critical curves,
        3 tangential + radial critical curves, 4 convergence + critical curves.

        Returns:
            (show_cc, show_lens, show_overlays)
    """
    show_cc = 1 < overlay_mode <= 4
    show_lens = overlay_mode in (1, 4)
    show_overlays = overlay_mode > 0
    return show_cc, show_lens, show_overlays


def composite_pixels(lensed, overlay_sum):
    """Lensed RGB values plus the overlay sum per channel, saturated at 255 (no wraparound)"""
    total = lensed.to(torch.int32) + overlay_sum.to(torch.int32).unsqueeze(-1)
    return torch.clamp(total, 0, 255).to(torch.uint8)


class FrameCompositor:
    """
        Renders the image produced by the lens for the given source on a screen of
        width x height pixels.

        lensed_rgb keeps the raytraced background so that overlays can be redrawn without
        raytracing again; final_rgb is background + overlays. Rows are distributed over the
        worker pool, each task writes only its own rows of both buffers.
    """

    def __init__(self, lens, source, width, height, pool=None):
        self.lens = lens
        self.source = source
        self.width = int(width)
        self.height = int(height)
        self.pool = pool if pool is not None else RowPartitionedPool()
        self.lensed_rgb = torch.zeros((self.height, self.width, 3), dtype=torch.uint8)
        self.final_rgb = torch.zeros((self.height, self.width, 3), dtype=torch.uint8)

    def render(self, overlay_mode, recompute_lensed=True):
        """
            Compute the frame. With recompute_lensed=False only the overlays are redrawn on
            top of the previously raytraced background.
        """
        self.pool.map_rows(self.height, lambda start, end: self._render_rows(start, end, overlay_mode, recompute_lensed))

        # Mark source center by a dot
        if overlay_mode >= 2:
            gray = (SOURCE_MARKER_GRAY,) * 3
            cv2.circle(self.final_rgb.numpy(), tuple(self.source.pos), SOURCE_MARKER_RADIUS, gray, -1)
        return self.final_rgb

    def _render_rows(self, start, end, overlay_mode, recompute_lensed):
        lens = self.lens
        show_cc, show_lens, show_overlays = overlay_flags(overlay_mode)
        device = lens.kappa8u.device
        h, w = lens.height, lens.width

        i = torch.arange(start, end, device=device)
        j = torch.arange(self.width, device=device)
        rel_i = i - lens.origin[1]
        rel_j = j - lens.origin[0]
        inside = lens.contains(j[None, :], i[:, None])

        overlay_sum = torch.zeros((end - start, self.width), dtype=torch.int32, device=device)
        is_white = torch.zeros_like(inside)
        is_caustic = torch.zeros_like(inside)

        # First the overlays (critical curves are always on top, then caustics)
        if show_overlays:
            rows = torch.clamp(rel_i, 0, h - 1)[:, None]
            cols = torch.clamp(rel_j, 0, w - 1)[None, :]
            if show_cc:
                cc_px = torch.where(inside, lens.cc_map[rows, cols].to(torch.int32), 0)
                if not recompute_lensed:
                    # Saturated curve pixels can be set directly when only the overlays change
                    is_white = cc_px == 255
                # Gray values occur since the contours are anti-aliased
                overlay_sum += torch.where(is_white, 0, cc_px)
                is_caustic = inside & ~is_white & (lens.caustic_map[rows, cols] > 0)
            if show_lens:
                overlay_sum += torch.where(inside, lens.kappa8u[rows, cols].to(torch.int32), 0)

        # Raytracing of the lensed image in the background
        if recompute_lensed:
            fi, safe_i = relocate_and_falloff(rel_i, h)
            fj, safe_j = relocate_and_falloff(rel_j, w)
            beta1, beta2 = lens.raytrace(j[None, :], i[:, None], safe_j[None, :], safe_i[:, None], fi[:, None] * fj[None, :])
            self.lensed_rgb[start:end] = self.source.sample(beta1, beta2).cpu()

        out = composite_pixels(self.lensed_rgb[start:end].to(device), overlay_sum)
        out[is_caustic] = torch.tensor(CAUSTIC_COLOR, dtype=torch.uint8, device=device)
        out[is_white] = torch.tensor(WHITE, dtype=torch.uint8, device=device)
        self.final_rgb[start:end] = out.cpu()
