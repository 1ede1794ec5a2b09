from __future__ import annotations

import pytest

from dronewatch.state.path import accumulate_path


def test_no_prior_path_starts_single_point() -> None:
    assert accumulate_path(None, (35.9, 31.95)) == ((35.9, 31.95),)


def test_append_preserves_order_and_duplicates() -> None:
    path = accumulate_path(None, (1.0, 1.0))
    path = accumulate_path(path, (2.0, 2.0))
    path = accumulate_path(path, (2.0, 2.0))
    path = accumulate_path(path, (0.5, 0.5))

    assert path == ((1.0, 1.0), (2.0, 2.0), (2.0, 2.0), (0.5, 0.5))


def test_existing_path_is_not_mutated() -> None:
    original = ((1.0, 1.0),)

    extended = accumulate_path(original, (2.0, 2.0))

    assert original == ((1.0, 1.0),)
    assert extended == ((1.0, 1.0), (2.0, 2.0))


def test_max_points_keeps_newest() -> None:
    path = None
    for i in range(5):
        path = accumulate_path(path, (float(i), float(i)), max_points=3)

    assert path == ((2.0, 2.0), (3.0, 3.0), (4.0, 4.0))


@pytest.mark.parametrize("max_points", [0, -2])
def test_non_positive_max_points_rejected(max_points: int) -> None:
    with pytest.raises(ValueError):
        accumulate_path(((1.0, 1.0),), (2.0, 2.0), max_points=max_points)
