"""Full-screen Spotify album art on an animated gradient."""

__version__ = "0.1.0"
