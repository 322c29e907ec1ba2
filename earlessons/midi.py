from __future__ import annotations

import asyncio
import io
import logging
from typing import Any, List, Optional, Sequence, Union

import mido

from .adapters import NoteEventHandler
from .models import ChordChallenge, IntervalChallenge, PlaybackTiming

logger = logging.getLogger(__name__)

TEMPO = mido.bpm2tempo(100)


class MidiInputAdapter:
	"""Feeds note events from a physical MIDI device to the shared handler.

	Messages are decoded with mido. Note-on with velocity 0 is a note-off, as
	most keyboards send it that way. Velocity is scaled to [0, 1].
	"""

	def __init__(self, handler: NoteEventHandler) -> None:
		self.handler = handler
		self.port: Optional[Any] = None

	def feed(self, data: Sequence[int]) -> bool:
		"""Decode one raw MIDI message. Returns True if it became a note event."""
		try:
			msg = mido.Message.from_bytes(list(data))
		except (ValueError, TypeError) as e:
			logger.debug("Ignoring undecodable MIDI data %r: %s", list(data), e)
			return False
		return self.handle_message(msg)

	def handle_message(self, msg: mido.Message) -> bool:
		if msg.type == "note_on" and msg.velocity > 0:
			self.handler.handle_note_on(msg.note, msg.velocity / 127.0)
			return True
		if msg.type == "note_off" or msg.type == "note_on":
			self.handler.handle_note_off(msg.note)
			return True
		return False

	def open(self, port_name: Optional[str] = None, loop: Optional[asyncio.AbstractEventLoop] = None) -> Any:
		"""Attach to a MIDI input port.

		The backend calls back on its own thread, so every message is handed
		to the event loop before it touches the handler.
		"""
		if loop is None:
			loop = asyncio.get_running_loop()
		self.close()

		def _callback(msg: mido.Message) -> None:
			loop.call_soon_threadsafe(self.handle_message, msg)

		self.port = mido.open_input(port_name, callback=_callback)
		logger.info("Listening on MIDI input %s", self.port.name)
		return self.port

	def close(self) -> None:
		if self.port is not None:
			self.port.close()
			self.port = None


def available_inputs() -> List[str]:
	return list(mido.get_input_names())


def challenge_to_midi_file(
	challenge: Union[IntervalChallenge, ChordChallenge],
	timing: PlaybackTiming,
	program: int = 0,
) -> mido.MidiFile:
	"""Write the challenge's playback sequence as a single-track MIDI file."""
	mid = mido.MidiFile()
	trk = mido.MidiTrack()
	mid.tracks.append(trk)
	trk.append(mido.MetaMessage("set_tempo", tempo=TEMPO, time=0))
	trk.append(mido.Message("program_change", program=program, time=0))
	vel = max(1, min(127, int(round(timing.velocity * 127))))
	tpb = mid.ticks_per_beat
	note_ticks = int(round(mido.second2tick(timing.note_seconds, tpb, TEMPO)))
	gap_ticks = int(round(mido.second2tick(timing.gap_seconds, tpb, TEMPO)))
	for i, m in enumerate(challenge.midi_notes):
		trk.append(mido.Message("note_on", note=m, velocity=vel, time=gap_ticks if i else 0))
		trk.append(mido.Message("note_off", note=m, velocity=0, time=note_ticks))
	return mid


def midi_bytes(challenge: Union[IntervalChallenge, ChordChallenge], timing: PlaybackTiming) -> bytes:
	buf = io.BytesIO()
	challenge_to_midi_file(challenge, timing).save(file=buf)
	return buf.getvalue()
