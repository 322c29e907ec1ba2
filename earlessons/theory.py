from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .models import ChordChallenge, ChordDefinition, Direction, IntervalChallenge, IntervalDefinition
from .notes import clamp_midi, midi_to_note

INTERVALS: Dict[str, IntervalDefinition] = {
	d.name: d
	for d in [
		IntervalDefinition(name="unison", semitones=0, short_name="P1"),
		IntervalDefinition(name="minor 2nd", semitones=1, short_name="m2"),
		IntervalDefinition(name="major 2nd", semitones=2, short_name="M2"),
		IntervalDefinition(name="minor 3rd", semitones=3, short_name="m3"),
		IntervalDefinition(name="major 3rd", semitones=4, short_name="M3"),
		IntervalDefinition(name="perfect 4th", semitones=5, short_name="P4"),
		IntervalDefinition(name="diminished 5th", semitones=6, short_name="d5"),
		IntervalDefinition(name="perfect 5th", semitones=7, short_name="P5"),
		IntervalDefinition(name="perfect octave", semitones=12, short_name="P8"),
	]
}

CHORDS: Dict[str, ChordDefinition] = {
	d.name: d
	for d in [
		ChordDefinition(name="major", offsets=(0, 4, 7), short_name="maj", display_name="Major"),
		ChordDefinition(name="minor", offsets=(0, 3, 7), short_name="min", display_name="Minor"),
		ChordDefinition(name="diminished", offsets=(0, 3, 6), short_name="dim", display_name="Diminished"),
		ChordDefinition(name="augmented", offsets=(0, 4, 8), short_name="aug", display_name="Augmented"),
	]
}


def interval_names() -> List[str]:
	return list(INTERVALS.keys())


def calculate_target_note(root_midi: int, interval: IntervalDefinition, direction: Direction) -> Tuple[int, str]:
	"""Return (target_midi, target_note) for an interval played from root_midi.

	The target is clamped to the MIDI range, so near the edges the result may
	not be the requested interval any more.
	"""
	d = interval.semitones
	if direction == "ascending":
		target = root_midi + d
	elif direction == "descending":
		target = root_midi - d
	else:
		target = root_midi
	target = clamp_midi(target)
	return target, midi_to_note(target)


def calculate_interval(first_midi: int, second_midi: int) -> Tuple[Optional[IntervalDefinition], Direction]:
	semitones = abs(second_midi - first_midi)
	if second_midi > first_midi:
		direction: Direction = "ascending"
	elif second_midi < first_midi:
		direction = "descending"
	else:
		direction = "none"
	for interval in INTERVALS.values():
		if interval.semitones == semitones:
			return interval, direction
	return None, direction


def interval_display_name(interval: IntervalDefinition, direction: Direction) -> str:
	name = interval.name[:1].upper() + interval.name[1:]
	if direction == "none":
		return name
	return f"{name} ({direction})"


def calculate_chord_notes(root_midi: int, chord: ChordDefinition) -> Tuple[List[str], List[int]]:
	midi_notes = [clamp_midi(root_midi + offset) for offset in chord.offsets]
	return [midi_to_note(m) for m in midi_notes], midi_notes


def chord_display_name(root_note: str, chord: ChordDefinition) -> str:
	return f"{root_note.rstrip('-0123456789')} {chord.display_name}"


def check_chord_match(played_midi: Sequence[int], expected_midi: Sequence[int]) -> bool:
	"""Order-insensitive comparison of played notes against a chord voicing."""
	if len(played_midi) != len(expected_midi):
		return False
	return sorted(played_midi) == sorted(expected_midi)


def make_interval_challenge(root_midi: int, interval: IntervalDefinition, direction: Direction) -> IntervalChallenge:
	root_midi = clamp_midi(root_midi)
	target_midi, target_note = calculate_target_note(root_midi, interval, direction)
	return IntervalChallenge(
		interval=interval,
		direction=direction,
		root_note=midi_to_note(root_midi),
		root_midi=root_midi,
		target_note=target_note,
		target_midi=target_midi,
		display_name=interval_display_name(interval, direction),
	)


def make_chord_challenge(root_midi: int, chord: ChordDefinition) -> ChordChallenge:
	root_midi = clamp_midi(root_midi)
	root_note = midi_to_note(root_midi)
	notes, midi_notes = calculate_chord_notes(root_midi, chord)
	return ChordChallenge(
		chord=chord,
		root_note=root_note,
		root_midi=root_midi,
		notes=tuple(notes),
		midi_notes=tuple(midi_notes),
		display_name=chord_display_name(root_note, chord),
	)


def judge_answer(challenge, played_midi: Sequence[int]) -> Tuple[bool, Optional[str]]:
	"""Return (correct, detected interval name) for notes played against a challenge."""
	if challenge.kind == "chord":
		return check_chord_match(played_midi, challenge.midi_notes), None
	if len(played_midi) != 2:
		return False, None
	interval, direction = calculate_interval(played_midi[0], played_midi[1])
	if interval is None:
		return False, None
	correct = interval.name == challenge.interval.name and direction == challenge.direction
	return correct, interval.name
