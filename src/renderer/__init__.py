# __init__.py
from .frame_compositor import FrameCompositor, composite_pixels, overlay_flags
from .render_context import RenderContext

__all__ = ['FrameCompositor', 'composite_pixels', 'overlay_flags', 'RenderContext']
