# config.py
import os

# Lens
DEFAULT_WEIGHT = 1.0
UINT8_KAPPA_MAX = 2.0          # grayscale 255 translates to kappa = 2 (arbitrary choice)
KAPPA_DISPLAY_LOG_OFFSET = 2.5  # display range of real kappa: [10^(-2.5), 255/70]
KAPPA_DISPLAY_LOG_SCALE = 70.

# Green's function G(theta = 0.01), used as a lower cut for the log at zero distance
GREEN_ZERO_REGULARIZATION = -1.4658711977588554

# Critical curves
CC_SMOOTHING_SIGMA = 4.
CC_SMOOTHING_KERNEL_SIZE = 33   # what OpenCV derives for sigma = 4

# Overlays (RGB)
WHITE = (255, 255, 255)
CAUSTIC_COLOR = (255, 0, 0)
SOURCE_MARKER_RADIUS = 7
SOURCE_MARKER_GRAY = 210
OVERLAY_MODE_TEXT = {
    0: "",
    1: "Add lens convergence",
    2: "Add critical curves (t) + source center (dot)",
    3: "Add critical curves (t+r) + source center (dot)",
    4: "Add lens + critical curves + source center (dot)",
}
STATUS_TIMEOUT_S = 1.0

# Sliders: integer positions mapped to physical values
WEIGHT_SLIDER_MAX = 200
WEIGHT_SLIDER_SCALE = 20.
SOURCE_SIZE_SLIDER_MAX = 400
SOURCE_SIZE_SLIDER_SCALE = 100.

DEFAULT_RENDER_CONFIG = {
    "overlay_mode": 1,
    "weight_slider": 100,
    "source_size_slider": 100,
    "num_workers": None,
}

# Parallelism
DEFAULT_NUM_WORKERS = os.cpu_count() or 1

# Viewer
WINDOW_SIZE_PX = (1024, 768)
