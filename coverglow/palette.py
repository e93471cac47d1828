import colorsys

# Swatch roles in the order the gradient uses them.
# (name, target lightness, min, max, target saturation, min, max)
ROLES = [
    ("vibrant",       0.50, 0.30, 0.70, 1.00, 0.35, 1.00),
    ("muted",         0.50, 0.30, 0.70, 0.30, 0.00, 0.40),
    ("dark_vibrant",  0.26, 0.00, 0.45, 1.00, 0.35, 1.00),
    ("dark_muted",    0.26, 0.00, 0.45, 0.30, 0.00, 0.40),
    ("light_vibrant", 0.74, 0.55, 1.00, 1.00, 0.35, 1.00),
    ("light_muted",   0.74, 0.55, 1.00, 0.30, 0.00, 0.40),
]

WEIGHT_SATURATION = 3.0
WEIGHT_LIGHTNESS = 6.5
WEIGHT_POPULATION = 0.5


def to_hls(rgb):
    r, g, b = (c / 255.0 for c in rgb)
    return colorsys.rgb_to_hls(r, g, b)


def _score(saturation, lightness, population, target_l, target_s):
    return (
        (1 - abs(saturation - target_s)) * WEIGHT_SATURATION
        + (1 - abs(lightness - target_l)) * WEIGHT_LIGHTNESS
        + population * WEIGHT_POPULATION
    ) / (WEIGHT_SATURATION + WEIGHT_LIGHTNESS + WEIGHT_POPULATION)


def classify(candidates):
    """
    Assign candidate colors to swatch roles.

    ``candidates`` is ordered most-common first, which is how colorthief
    returns its palette; position stands in for pixel population. Each color
    fills at most one role. Returns ``{role: [r, g, b]}`` with unfilled roles
    left out.
    """
    colors = [tuple(int(c) for c in rgb[:3]) for rgb in candidates]
    total = len(colors)
    swatches = {}
    used = set()

    for name, target_l, min_l, max_l, target_s, min_s, max_s in ROLES:
        best = None
        best_score = -1.0
        for index, rgb in enumerate(colors):
            if rgb in used:
                continue
            _, lightness, saturation = to_hls(rgb)
            if not (min_l <= lightness <= max_l and min_s <= saturation <= max_s):
                continue
            population = 1 - index / total
            score = _score(saturation, lightness, population, target_l, target_s)
            if score > best_score:
                best, best_score = rgb, score
        if best is not None:
            used.add(best)
            swatches[name] = list(best)

    return swatches


def ordered_swatches(candidates):
    swatches = classify(candidates)
    return [swatches[name] for name, *_ in ROLES if name in swatches]
