from __future__ import annotations

from typing import Dict, Optional, Protocol, Set

from .notes import NoteLike, to_midi

DEFAULT_VELOCITY = 0.7

# Offsets from the keyboard's start note (C3 by default)
KEY_OFFSETS: Dict[str, int] = {
	"a": 0, "w": 1, "s": 2, "e": 3, "d": 4, "f": 5, "t": 6, "g": 7,
	"y": 8, "h": 9, "u": 10, "j": 11, "k": 12, "o": 13, "l": 14, "p": 15,
	";": 16, "'": 17, "[": 18, "]": 19,
}


class NoteEventHandler(Protocol):
	def handle_note_on(self, note: NoteLike, velocity: float = DEFAULT_VELOCITY) -> object: ...

	def handle_note_off(self, note: NoteLike) -> None: ...


class KeyboardAdapter:
	"""Turns computer key presses into note events."""

	def __init__(self, handler: NoteEventHandler, start_note: int = 48) -> None:
		self.handler = handler
		self.start_note = start_note
		self.held: Set[str] = set()

	def midi_for_key(self, key: str) -> Optional[int]:
		offset = KEY_OFFSETS.get(key.lower())
		if offset is None:
			return None
		return to_midi(self.start_note + offset)

	def key_down(self, key: str, repeat: bool = False, modifiers: bool = False) -> bool:
		"""Returns True when the key produced a note-on."""
		if repeat or modifiers:
			return False
		midi = self.midi_for_key(key)
		k = key.lower()
		if midi is None or k in self.held:
			return False
		self.held.add(k)
		self.handler.handle_note_on(midi, DEFAULT_VELOCITY)
		return True

	def key_up(self, key: str) -> bool:
		midi = self.midi_for_key(key)
		if midi is None:
			return False
		self.held.discard(key.lower())
		self.handler.handle_note_off(midi)
		return True

	def blur(self) -> None:
		# Key-up events are lost when focus leaves; only forget the keys
		self.held.clear()


class PointerAdapter:
	"""Clicks and touches on the on-screen piano."""

	def __init__(self, handler: NoteEventHandler) -> None:
		self.handler = handler
		self.held: Set[int] = set()

	def press(self, note: NoteLike, velocity: float = DEFAULT_VELOCITY) -> bool:
		midi = to_midi(note)
		if midi is None or midi in self.held:
			return False
		self.held.add(midi)
		self.handler.handle_note_on(midi, velocity)
		return True

	def release(self, note: NoteLike) -> bool:
		midi = to_midi(note)
		if midi is None or midi not in self.held:
			return False
		self.held.discard(midi)
		self.handler.handle_note_off(midi)
		return True

	def release_all(self) -> None:
		for midi in sorted(self.held):
			self.handler.handle_note_off(midi)
		self.held.clear()
