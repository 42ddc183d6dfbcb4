import matplotlib.pyplot as plt
from matplotlib.widgets import Slider

from config import (OVERLAY_MODE_TEXT, WEIGHT_SLIDER_MAX, SOURCE_SIZE_SLIDER_MAX,
                    WINDOW_SIZE_PX)


class Screen:
    """
        matplotlib window showing the frames of a RenderContext.

        Sliders change overlay mode, lens weight and source size; dragging with the left
        mouse button moves the lens; "q" closes the window.
    """

    def __init__(self, context, title="quicklens", dpi=100):
        self.context = context
        self.mouse_lbutton_down = False

        cfg = context.config_dict
        self.fig = plt.figure(figsize=(WINDOW_SIZE_PX[0] / dpi, WINDOW_SIZE_PX[1] / dpi), dpi=dpi)
        self.fig.canvas.manager.set_window_title(title)
        self.ax = self.fig.add_axes([0.02, 0.2, 0.96, 0.78])
        self.ax.set_axis_off()
        self.image = self.ax.imshow(context.frame.numpy(), interpolation='nearest')
        self.text = self.fig.text(0.03, 0.95, "", color="white", fontsize=14, va='top')

        # slider setup
        ax_overlays = self.fig.add_axes([0.2, 0.12, 0.65, 0.03])
        ax_weight = self.fig.add_axes([0.2, 0.07, 0.65, 0.03])
        ax_size = self.fig.add_axes([0.2, 0.02, 0.65, 0.03])
        self.slider_overlays = Slider(ax_overlays, 'Overlays', 0, max(OVERLAY_MODE_TEXT),
                                      valinit=cfg["overlay_mode"], valstep=1)
        self.slider_weight = Slider(ax_weight, 'Kappa weight', 0, WEIGHT_SLIDER_MAX,
                                    valinit=cfg["weight_slider"], valstep=1)
        self.slider_size = Slider(ax_size, 'Source size', 0, SOURCE_SIZE_SLIDER_MAX,
                                  valinit=cfg["source_size_slider"], valstep=1)
        self.slider_overlays.on_changed(lambda val: self.show(self.context.set_overlay_mode(int(val))))
        self.slider_weight.on_changed(lambda val: self.show(self.context.set_weight_slider(int(val))))
        self.slider_size.on_changed(lambda val: self.show(self.context.set_source_size_slider(int(val))))

        self.fig.canvas.mpl_connect('button_press_event', self.handle_mouse_press)
        self.fig.canvas.mpl_connect('button_release_event', self.handle_mouse_release)
        self.fig.canvas.mpl_connect('motion_notify_event', self.handle_mouse_move)
        self.fig.canvas.mpl_connect('key_press_event', self.handle_key)

        self.timer = self.fig.canvas.new_timer(interval=200)
        self.timer.add_callback(self.clear_msg_display)
        self.timer.start()

    def show(self, frame):
        self.image.set_data(frame.numpy())
        self.text.set_text(self.context.status_text)
        self.fig.canvas.draw_idle()

    def _move_lens(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return
        self.show(self.context.move_lens(int(round(event.xdata)), int(round(event.ydata))))

    def handle_mouse_press(self, event):
        if event.button == 1 and event.inaxes is self.ax:
            self.mouse_lbutton_down = True
            self._move_lens(event)

    def handle_mouse_release(self, event):
        if event.button == 1:
            self.mouse_lbutton_down = False

    def handle_mouse_move(self, event):
        if self.mouse_lbutton_down:
            self._move_lens(event)

    def handle_key(self, event):
        if event.key == 'q':
            plt.close(self.fig)

    def clear_msg_display(self):
        if self.context.clear_expired_status():
            self.text.set_text("")
            self.fig.canvas.draw_idle()

    def run(self):
        plt.show()
