from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from .models import ChordChallenge, IntervalChallenge
from .notes import DEFAULT_MIDI, NoteLike, note_to_midi
from .theory import CHORDS, INTERVALS, make_chord_challenge, make_interval_challenge

T = TypeVar("T", IntervalChallenge, ChordChallenge)


def _root_midi(root: NoteLike) -> int:
	if isinstance(root, str):
		return note_to_midi(root)
	return int(root)


def generate_interval_pool(root: NoteLike = DEFAULT_MIDI) -> List[IntervalChallenge]:
	"""All 17 interval challenges for one root: unison once, every other interval up and down."""
	root_midi = _root_midi(root)
	pool: List[IntervalChallenge] = []
	for interval in INTERVALS.values():
		if interval.semitones == 0:
			pool.append(make_interval_challenge(root_midi, interval, "none"))
			continue
		for direction in ("ascending", "descending"):
			pool.append(make_interval_challenge(root_midi, interval, direction))
	return pool


def generate_chord_pool(roots: Sequence[NoteLike] = ("C4",)) -> List[ChordChallenge]:
	pool: List[ChordChallenge] = []
	for root in roots:
		root_midi = _root_midi(root)
		for chord in CHORDS.values():
			pool.append(make_chord_challenge(root_midi, chord))
	return pool


def challenge_key(challenge: Union[IntervalChallenge, ChordChallenge]) -> Tuple[str, ...]:
	return challenge.key


def unique_by_key(pool: Sequence[T]) -> List[T]:
	seen: Dict[Tuple[str, ...], T] = {}
	for c in pool:
		seen.setdefault(challenge_key(c), c)
	return list(seen.values())


def select_random_challenges(pool: Sequence[T], count: int, rng: Optional[np.random.Generator] = None) -> List[T]:
	"""Sample up to `count` challenges without replacement.

	Entries sharing an identity key are collapsed first, so the result never
	holds duplicates. Asking for more than the pool holds returns the whole
	pool in random order.
	"""
	if count < 0:
		raise ValueError(f"count must be >= 0, got {count}")
	if rng is None:
		rng = np.random.default_rng()
	unique = unique_by_key(pool)
	k = min(count, len(unique))
	order = rng.permutation(len(unique))[:k]
	return [unique[int(i)] for i in order]
