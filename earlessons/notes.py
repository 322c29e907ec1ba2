from __future__ import annotations

import logging
import re
from typing import Optional, Union

logger = logging.getLogger(__name__)

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

MIDI_MIN = 0
MIDI_MAX = 127
DEFAULT_MIDI = 60  # C4
A4_MIDI = 69
A4_FREQ = 440.0

_NOTE_RE = re.compile(r"^([A-G]#?)(-?\d+)$")

NoteLike = Union[str, int]


def clamp_midi(m: int) -> int:
	return max(MIDI_MIN, min(MIDI_MAX, int(m)))


def midi_to_note(m: int) -> str:
	m = clamp_midi(m)
	return f"{NOTE_NAMES[m % 12]}{m // 12 - 1}"


def parse_note(note: str) -> Optional[int]:
	"""Strictly parse a note string like "C4" or "A#3". Returns None when malformed."""
	if not isinstance(note, str):
		return None
	match = _NOTE_RE.match(note.strip())
	if not match:
		return None
	name, octave = match.groups()
	return clamp_midi((int(octave) + 1) * 12 + NOTE_NAMES.index(name))


def note_to_midi(note: str) -> int:
	"""Parse a note string, falling back to C4 when it cannot be parsed."""
	m = parse_note(note)
	if m is None:
		logger.warning("Malformed note %r, falling back to %s", note, midi_to_note(DEFAULT_MIDI))
		return DEFAULT_MIDI
	return m


def to_midi(note: NoteLike) -> Optional[int]:
	if isinstance(note, bool):
		return None
	if isinstance(note, int):
		return clamp_midi(note)
	return parse_note(note)


def midi_to_freq(m: int) -> float:
	return float(A4_FREQ * (2.0 ** ((m - A4_MIDI) / 12.0)))
