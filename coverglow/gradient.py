DEFAULT_COLOR = (30, 30, 30)
BASE_TEMPO = 120.0


def rgb_to_hex(rgb):
    return f"#{int(rgb[0]):02x}{int(rgb[1]):02x}{int(rgb[2]):02x}"


def lerp_color(start, end, t):
    # handle bad color input gracefully
    if not (isinstance(start, (tuple, list)) and len(start) == 3):
        start = DEFAULT_COLOR
    if not (isinstance(end, (tuple, list)) and len(end) == 3):
        end = DEFAULT_COLOR
    t = max(0.0, min(1.0, t))
    return tuple(int(round(a + (b - a) * t)) for a, b in zip(start, end))


def gradient_bands(colors, count, phase=0.0):
    """
    Colors for ``count`` horizontal bands of a looping gradient through
    ``colors``. ``phase`` in [0, 1) scrolls the gradient by that fraction.
    """
    colors = list(colors) or [DEFAULT_COLOR]
    n = len(colors)
    bands = []
    for i in range(count):
        position = ((i / count + phase) % 1.0) * n
        index = int(position) % n
        bands.append(lerp_color(colors[index], colors[(index + 1) % n], position - int(position)))
    return bands


def blend_bands(old, new, t):
    return [lerp_color(a, b, t) for a, b in zip(old, new)]


def animation_speed(audio_features):
    """Gradient scroll speed multiplier: 1.0 at 120bpm, faster for energetic tracks."""
    if not audio_features or audio_features.get("tempo") is None:
        return 1.0
    speed = max(0.5, min(2.0, float(audio_features["tempo"]) / BASE_TEMPO))
    energy = audio_features.get("energy")
    if energy is not None:
        speed *= 0.75 + 0.5 * max(0.0, min(1.0, float(energy)))
    return speed
