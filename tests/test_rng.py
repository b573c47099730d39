import pytest

from depthcrawl.rng import RandomSource


def test_seeded_sources_repeat_the_same_sequence():
    a = RandomSource(1234)
    b = RandomSource(1234)
    assert [a.random() for _ in range(20)] == [b.random() for _ in range(20)]


def test_randrange_and_randint_stay_in_bounds():
    rng = RandomSource(5)
    for _ in range(500):
        assert 0 <= rng.randrange(7) < 7
        assert 3 <= rng.randint(3, 5) <= 5


def test_invalid_ranges_raise():
    rng = RandomSource(5)
    with pytest.raises(ValueError):
        rng.randrange(0)
    with pytest.raises(ValueError):
        rng.randint(4, 2)
    with pytest.raises(ValueError):
        rng.choice([])


def test_choice_draws_from_sequence():
    rng = RandomSource(9)
    items = ["a", "b", "c"]
    drawn = {rng.choice(items) for _ in range(100)}
    assert drawn == set(items)


def test_derived_streams_are_reproducible_and_independent():
    master = RandomSource(42)
    first = master.derive("floor_layout", 2)

    # Draws on the master do not change what a derived stream yields.
    for _ in range(10):
        master.random()
    again = master.derive("floor_layout", 2)
    assert [first.random() for _ in range(5)] == [again.random() for _ in range(5)]

    assert master.derive_seed("floor_layout", 2) != master.derive_seed("floor_layout", 3)
    assert master.derive_seed("floor_layout", 2) != master.derive_seed("other", 2)
    assert RandomSource(43).derive_seed("floor_layout", 2) != master.derive_seed("floor_layout", 2)


def test_unseeded_sources_still_produce_floats():
    rng = RandomSource()
    value = rng.random()
    assert 0.0 <= value < 1.0
