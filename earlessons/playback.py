from __future__ import annotations

import asyncio
import logging
from typing import List, Literal, Optional, Protocol, Union

from .models import ChordChallenge, IntervalChallenge, LessonSettings

logger = logging.getLogger(__name__)

SequencerState = Literal["idle", "playing"]


class NoteOutput(Protocol):
	"""Anything that can sound a note: a synth, a MIDI out port, a test fake."""

	def note_on(self, midi: int, velocity: float = 0.7) -> None: ...

	def note_off(self, midi: int) -> None: ...


class NullNoteOutput:
	def note_on(self, midi: int, velocity: float = 0.7) -> None:
		pass

	def note_off(self, midi: int) -> None:
		pass


class PlaybackObserver:
	"""Hook for highlighting notes as they are played. The default does nothing."""

	def note_played(self, midi: int) -> None:
		pass


class CancellationToken:
	def __init__(self) -> None:
		self._event = asyncio.Event()

	@property
	def cancelled(self) -> bool:
		return self._event.is_set()

	def cancel(self) -> None:
		self._event.set()

	async def wait(self, seconds: float) -> bool:
		"""Sleep for `seconds`; return True if cancelled before the time ran out."""
		if self._event.is_set():
			return True
		try:
			await asyncio.wait_for(self._event.wait(), timeout=seconds)
		except asyncio.TimeoutError:
			return False
		return True


class PlaybackSequencer:
	"""Plays one challenge at a time as a strictly sequential note-on/note-off run.

	A second `play` while a sequence is in flight is ignored, not queued.
	`cancel` stops the in-flight sequence at its next wait and releases every
	note it started.
	"""

	def __init__(
		self,
		output: Optional[NoteOutput] = None,
		settings: Optional[LessonSettings] = None,
		observer: Optional[PlaybackObserver] = None,
	) -> None:
		self.output = output or NullNoteOutput()
		self.settings = settings or LessonSettings()
		self.observer = observer or PlaybackObserver()
		self._token: Optional[CancellationToken] = None

	@property
	def state(self) -> SequencerState:
		return "playing" if self._token is not None else "idle"

	@property
	def is_playing(self) -> bool:
		return self._token is not None

	def cancel(self) -> None:
		if self._token is not None:
			self._token.cancel()

	async def play(self, challenge: Union[IntervalChallenge, ChordChallenge]) -> bool:
		"""Play the challenge. Returns True when every note was played to the end."""
		if self._token is not None:
			logger.debug("Ignoring play of %s: a sequence is already playing", challenge.display_name)
			return False
		token = CancellationToken()
		self._token = token
		timing = self.settings.timing_for(challenge.kind)
		notes = list(challenge.midi_notes)
		sounding: List[int] = []
		try:
			for i, midi in enumerate(notes):
				self.observer.note_played(midi)
				self.output.note_on(midi, timing.velocity)
				sounding.append(midi)
				if await token.wait(timing.note_seconds):
					break
				self.output.note_off(midi)
				sounding.pop()
				if i < len(notes) - 1 and await token.wait(timing.gap_seconds):
					break
		finally:
			for midi in sounding:
				self.output.note_off(midi)
			self._token = None
		if token.cancelled:
			logger.debug("Playback of %s cancelled", challenge.display_name)
			return False
		return True
