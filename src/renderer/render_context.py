import time

from config import (DEFAULT_RENDER_CONFIG, OVERLAY_MODE_TEXT, STATUS_TIMEOUT_S,
                    WEIGHT_SLIDER_SCALE, SOURCE_SIZE_SLIDER_SCALE)
from shared_utils import InvalidInputError, RowPartitionedPool
from .frame_compositor import FrameCompositor, overlay_flags


class RenderContext:
    """
        Interactive state of one screen: lens, source, overlay mode and the frame buffers.

        Every event handler does the minimal recomputation and returns the refreshed frame.
        Calls must not overlap, the caller serializes the events.
    """

    def __init__(self, lens, source, width, height, config_dict=None, clock=time.monotonic):
        """
            config_dict overrides DEFAULT_RENDER_CONFIG, e.g.

            config_dict = {
                "overlay_mode": 1,          # 0..4
                "weight_slider": 100,       # lens weight = weight_slider / 20
                "source_size_slider": 100,  # source factor = source_size_slider / 100
                "num_workers": None,        # None: all cores
            }
        """
        config = dict(DEFAULT_RENDER_CONFIG)
        config.update(config_dict or {})
        self.config_dict = config

        self.lens = lens
        self.source = source
        self.clock = clock
        self.pool = RowPartitionedPool(config["num_workers"])
        self.compositor = FrameCompositor(lens, source, width, height, pool=self.pool)
        self._check_overlay_mode(config["overlay_mode"])
        self.overlay_mode = config["overlay_mode"]

        self.redraw_cc_on_next_action = True
        self.cc_radial = False
        self.status_text = ""
        self.status_since = self.clock()

        if config["source_size_slider"] != SOURCE_SIZE_SLIDER_SCALE:
            self.source.resize_area(config["source_size_slider"] / SOURCE_SIZE_SLIDER_SCALE)
        self.set_weight_slider(config["weight_slider"])

    @property
    def frame(self):
        return self.compositor.final_rgb

    @staticmethod
    def _check_overlay_mode(mode):
        if mode not in OVERLAY_MODE_TEXT:
            raise InvalidInputError(f"Overlay mode must be one of {sorted(OVERLAY_MODE_TEXT)}, got {mode}")

    def refresh(self, redraw_overlay_only=False):
        """Re-render the frame (only the overlays if redraw_overlay_only)"""
        return self.compositor.render(self.overlay_mode, recompute_lensed=not redraw_overlay_only)

    # Event handlers

    def move_lens(self, x, y):
        self.lens.move(x, y)
        return self.refresh()

    def move_source(self, x, y):
        self.source.move(x, y)
        return self.refresh()

    def set_weight(self, weight):
        """
            Re-apply the lens weight. Critical curves are recomputed right away if they are
            shown, otherwise on the next overlay change.
        """
        self.lens.weight = weight
        show_cc, _, _ = overlay_flags(self.overlay_mode)
        if show_cc:
            self.cc_radial = self.overlay_mode in (3, 4)
            self.lens.update_critical_curves(self.cc_radial)
            self.redraw_cc_on_next_action = False
        else:
            self.redraw_cc_on_next_action = True
        return self.refresh()

    def set_weight_slider(self, value):
        return self.set_weight(value / WEIGHT_SLIDER_SCALE)

    def set_overlay_mode(self, mode):
        """Switch overlays; the lensed image itself is not raytraced again"""
        self._check_overlay_mode(mode)
        self.overlay_mode = mode
        show_cc, _, _ = overlay_flags(mode)
        if show_cc:
            show_radial = mode in (3, 4)
            if self.cc_radial != show_radial:
                self.redraw_cc_on_next_action = True
                self.cc_radial = show_radial
            if self.redraw_cc_on_next_action:
                self.lens.update_critical_curves(show_radial)
                self.redraw_cc_on_next_action = False

        self.status_text = OVERLAY_MODE_TEXT[mode]
        frame = self.refresh(redraw_overlay_only=True)
        self.status_since = self.clock()
        return frame

    def resize_source(self, factor):
        self.source.resize_area(factor)
        return self.refresh()

    def set_source_size_slider(self, value):
        return self.resize_source(value / SOURCE_SIZE_SLIDER_SCALE)

    def clear_expired_status(self):
        """Clear the status text once it has been shown long enough. Returns True if cleared."""
        if not self.status_text:
            return False
        if self.clock() - self.status_since < STATUS_TIMEOUT_S:
            return False
        self.status_text = ""
        return True
