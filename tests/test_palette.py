from coverglow.palette import classify, ordered_swatches

RED = (200, 30, 30)
DARK_GREY = (40, 40, 40)
PINK = (240, 200, 200)


def test_classify_roles():
    swatches = classify([RED, DARK_GREY, PINK])

    assert swatches == {
        "vibrant": [200, 30, 30],
        "dark_muted": [40, 40, 40],
        "light_vibrant": [240, 200, 200],
    }


def test_roles_come_out_in_fixed_order():
    assert ordered_swatches([PINK, DARK_GREY, RED]) == [
        [200, 30, 30], [40, 40, 40], [240, 200, 200]
    ]


def test_a_color_fills_one_role_only():
    assert len(ordered_swatches([RED, RED, RED])) == 1


def test_empty_palette():
    assert ordered_swatches([]) == []
