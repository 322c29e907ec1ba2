from collections import Counter

import numpy as np
import pytest

from earlessons.pool import challenge_key, generate_chord_pool, generate_interval_pool, select_random_challenges


def test_interval_pool_structure():
	pool = generate_interval_pool(60)
	assert len(pool) == 17
	directions = Counter(c.direction for c in pool)
	assert directions["none"] == 1
	per_interval = Counter(c.interval.name for c in pool if c.direction != "none")
	assert len(per_interval) == 8
	assert set(per_interval.values()) == {2}
	assert len({challenge_key(c) for c in pool}) == 17
	assert all(c.root_midi == 60 for c in pool)


def test_interval_pool_is_order_stable():
	assert [c.key for c in generate_interval_pool("C4")] == [c.key for c in generate_interval_pool(60)]


@pytest.mark.parametrize("root", [0, 5, 60, 120, 127])
def test_interval_pool_length_at_any_root(root):
	assert len(generate_interval_pool(root)) == 17


def test_chord_pool_cross_product():
	pool = generate_chord_pool(["C4", "D4", "G3"])
	assert len(pool) == 12
	assert pool[0].display_name == "C Major"
	assert pool[4].root_note == "D4"
	assert len({challenge_key(c) for c in pool}) == 12


def test_select_returns_min_of_count_and_pool():
	pool = generate_interval_pool(60)
	rng = np.random.default_rng(1)
	picked = select_random_challenges(pool, 5, rng)
	assert len(picked) == 5
	assert len({c.key for c in picked}) == 5
	assert select_random_challenges(pool, 0, rng) == []


def test_select_more_than_pool_returns_whole_pool():
	pool = generate_chord_pool(["C4"])
	picked = select_random_challenges(pool, 100, np.random.default_rng(7))
	assert len(picked) == 4
	assert sorted(c.key for c in picked) == sorted(c.key for c in pool)


def test_select_drops_duplicate_keys():
	pool = generate_chord_pool(["C4"])
	picked = select_random_challenges(pool + pool, 100, np.random.default_rng(3))
	assert len(picked) == 4


def test_select_is_reproducible_with_seeded_rng():
	pool = generate_interval_pool(60)
	a = select_random_challenges(pool, 5, np.random.default_rng(42))
	b = select_random_challenges(pool, 5, np.random.default_rng(42))
	assert [c.key for c in a] == [c.key for c in b]


def test_select_rejects_negative_count():
	with pytest.raises(ValueError):
		select_random_challenges(generate_interval_pool(60), -1)
