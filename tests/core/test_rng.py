from __future__ import annotations

import numpy as np

from core.rng import MAX_RANDOM_INT, Ref, make_rng, publish_random_int


def test_ref_get_set_and_is_none() -> None:
    ref: Ref[int] = Ref()
    assert ref.is_none()
    assert ref.get() is None
    ref.set(4)
    assert not ref.is_none()
    assert ref.get() == 4
    assert repr(ref) == "Ref(4)"


def test_ref_listeners_receive_previous_and_current() -> None:
    ref: Ref[int] = Ref(1)
    seen: list[tuple[int | None, int | None]] = []
    listener = ref.add_listener(lambda prev, curr: seen.append((prev, curr)))
    ref.set(2)
    ref.set(3)
    ref.remove_listener(listener)
    ref.set(4)
    ref.remove_listener(listener)

    assert seen == [(1, 2), (2, 3)]


def test_make_rng_is_reproducible() -> None:
    a = make_rng(5).standard_normal(4)
    b = make_rng(5).standard_normal(4)
    np.testing.assert_array_equal(a, b)


def test_publish_random_int_sets_ref() -> None:
    ref: Ref[int] = Ref()
    values = [publish_random_int(make_rng(0), ref) for _ in range(2)]
    assert values[0] == values[1]
    assert ref.get() == values[1]
    assert 0 <= values[0] < MAX_RANDOM_INT


def test_publish_random_int_without_ref() -> None:
    value = publish_random_int(make_rng(1), None)
    assert isinstance(value, int)
