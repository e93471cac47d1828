'''
Full-screen album art on an animated gradient.

Started by the poller with the first track as positional arguments, then
kept up to date by watching the shared update record.
'''

import logging
import os
import sys
import tkinter as tk

from PIL import Image, ImageTk

from coverglow import config
from coverglow.gradient import animation_speed, blend_bands, gradient_bands, rgb_to_hex
from coverglow.listener import UpdateListener
from coverglow.record import parse_start_args

logger = logging.getLogger(__name__)

BAND_COUNT = 48
FRAME_MS = 40
FADE_FRAMES = 25
PHASE_STEP = 0.0015
ART_SCALE = 0.6

FILE_WATCH_MS = 1000
DIR_WATCH_MS = 500


class DisplayApp:
    UNINITIALIZED = "uninitialized"
    RENDERING = "rendering"

    def __init__(self):
        self.state = self.UNINITIALIZED
        self.root = None
        self.canvas = None
        self.bands = []
        self.photo = None
        self.hidden = False

        self.colors = []
        self.prev_colors = []
        self.fade = 1.0
        self.phase = 0.0
        self.speed = 1.0

    def start(self, update):
        if self.state == self.RENDERING:
            self.apply(update)
            return

        logger.info("Creating window")
        self.root = tk.Tk()
        self.root.title("coverglow")
        self.root.configure(bg=rgb_to_hex((0, 0, 0)), cursor="none")
        self.width = self.root.winfo_screenwidth()
        self.height = self.root.winfo_screenheight()
        self.root.geometry(f"{self.width}x{self.height}+0+0")
        self.root.attributes("-fullscreen", True)
        # closing only hides the window; the listener keeps running
        self.root.bind("<Escape>", lambda e: self.hide())
        self.root.protocol("WM_DELETE_WINDOW", self.hide)

        self.canvas = tk.Canvas(self.root, width=self.width, height=self.height,
                                highlightthickness=0, bd=0)
        self.canvas.pack(fill="both", expand=True)

        band_height = self.height / BAND_COUNT
        for i in range(BAND_COUNT):
            y0 = int(i * band_height)
            y1 = int((i + 1) * band_height) + 1
            self.bands.append(self.canvas.create_rectangle(0, y0, self.width, y1, width=0))

        art_size = int(min(self.width, self.height) * ART_SCALE)
        self.art_size = art_size
        center_x = self.width // 2
        art_y = self.height // 2 - self.height // 12
        self.art_item = self.canvas.create_image(center_x, art_y)

        text_y = art_y + art_size // 2 + 40
        self.title_item = self.canvas.create_text(
            center_x, text_y, fill="white", font=("Helvetica", 28, "bold"),
            width=self.width - 80)
        self.artist_item = self.canvas.create_text(
            center_x, text_y + 44, fill="white", font=("Helvetica", 20),
            width=self.width - 80)
        self.album_item = self.canvas.create_text(
            center_x, text_y + 78, fill="#dddddd", font=("Helvetica", 16, "italic"),
            width=self.width - 80)

        self.state = self.RENDERING
        logger.info(f"Window shown ({self.width}x{self.height})")
        self.apply(update)
        self.root.after(FRAME_MS, self.animate)

    def apply(self, update):
        """Push a new track into the existing window."""
        info = update.get("trackInfo") or {}
        logger.info(f"Updating window: imagePath={update.get('imagePath')}, track={info.get('track', 'unknown')}")

        if self.hidden:
            self.root.deiconify()
            self.root.attributes("-fullscreen", True)
            self.hidden = False
        self.show_art(update.get("imagePath"))
        self.canvas.itemconfigure(self.title_item, text=info.get("track", ""))
        self.canvas.itemconfigure(self.artist_item, text=info.get("artist", ""))
        self.canvas.itemconfigure(self.album_item, text=info.get("album", ""))

        new_colors = [tuple(c) for c in update.get("colors") or []]
        self.prev_colors = self.colors or new_colors
        self.colors = new_colors
        self.fade = 0.0
        self.speed = animation_speed(update.get("audioFeatures"))

    def hide(self):
        logger.info("Window closed, still watching for updates")
        self.root.withdraw()
        self.hidden = True

    def show_art(self, image_path):
        if not image_path:
            return
        try:
            img = Image.open(image_path).convert("RGB")
        except (OSError, ValueError) as e:
            logger.warning(f"Could not open album art {image_path}: {e}")
            return
        img = img.resize((self.art_size, self.art_size))
        photo = ImageTk.PhotoImage(img)
        self.canvas.itemconfigure(self.art_item, image=photo)
        self.photo = photo  # keep a reference or tk drops the image

    def animate(self):
        self.phase = (self.phase + PHASE_STEP * self.speed) % 1.0
        if self.fade < 1.0:
            self.fade = min(1.0, self.fade + 1.0 / FADE_FRAMES)

        colors = gradient_bands(self.colors, BAND_COUNT, self.phase)
        if self.fade < 1.0:
            old = gradient_bands(self.prev_colors, BAND_COUNT, self.phase)
            colors = blend_bands(old, colors, self.fade)

        for item, color in zip(self.bands, colors):
            self.canvas.itemconfigure(item, fill=rgb_to_hex(color))
        self.root.after(FRAME_MS, self.animate)

    def watch(self, listener):
        def poll_file():
            listener.poll_file()
            self.root.after(FILE_WATCH_MS, poll_file)

        def poll_directory():
            listener.poll_directory()
            self.root.after(DIR_WATCH_MS, poll_directory)

        logger.info(f"Watching for updates at: {listener.path}")
        listener.start()
        self.root.after(FILE_WATCH_MS, poll_file)
        self.root.after(DIR_WATCH_MS, poll_directory)

    def run(self):
        self.root.mainloop()


def main(argv=None):
    config.setup_logging(debug=bool(os.getenv("COVERGLOW_DEBUG")))
    args = sys.argv[1:] if argv is None else argv

    logger.info("Display process ready")
    logger.info(f"DISPLAY={os.getenv('DISPLAY', 'not set')}")
    logger.info(f"Received {len(args)} command line arguments")
    try:
        initial = parse_start_args(args)
    except ValueError as e:
        logger.error(f"Missing or invalid arguments: {e}")
        return 1

    update_path = os.getenv(config.UPDATE_FILE_ENV) or config.update_path()

    app = DisplayApp()
    logger.info(f"Creating window with track: {initial['trackInfo'].get('track', 'unknown')}")
    app.start(initial)
    app.watch(UpdateListener(update_path, app.apply))
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
