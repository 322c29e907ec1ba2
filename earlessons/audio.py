SR = 44100

import io
from typing import List, Sequence, Union, cast

import numpy as np
import numpy.typing as npt
import soundfile as sf

from .models import ChordChallenge, IntervalChallenge, PlaybackTiming
from .notes import midi_to_freq


def tone(freq: float, dur: float, waveform: str = "sine", velocity: float = 1.0) -> npt.NDArray[np.float32]:
	"""Generate a single tone with a simple attack/release envelope.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		waveform: One of {"sine","triangle","saw"}
		velocity: Peak amplitude in [0, 1]
	"""
	t = np.linspace(0.0, dur, int(SR * dur), endpoint=False, dtype=np.float32)
	omega = 2.0 * np.pi * freq
	if waveform == "sine":
		x = np.sin(omega * t).astype(np.float32)
	elif waveform == "triangle":
		x = ((2.0 / np.pi) * np.arcsin(np.sin(omega * t))).astype(np.float32)
	else:
		phase = (freq * t).astype(np.float32)
		x = (2.0 * (phase - np.floor(phase + 0.5))).astype(np.float32)

	# 5ms attack, 50ms release
	attack = min(int(0.005 * SR), len(x))
	release = min(int(0.050 * SR), len(x) - attack)
	env = np.ones_like(x, dtype=np.float32)
	if attack > 0:
		env[:attack] = np.linspace(0.0, 1.0, attack, endpoint=False, dtype=np.float32)
	if release > 0:
		env[-release:] = np.linspace(1.0, 0.0, release, endpoint=False, dtype=np.float32)

	y = (x * env * np.float32(velocity)).astype(np.float32)
	return cast(npt.NDArray[np.float32], y)


def render_notes(
	midi_notes: Sequence[int],
	note_seconds: float = 0.5,
	gap_seconds: float = 0.1,
	waveform: str = "sine",
	velocity: float = 0.7,
) -> npt.NDArray[np.float32]:
	"""Render notes one after another with a silent gap between them."""
	gap = np.zeros(int(SR * gap_seconds), dtype=np.float32)
	parts: List[npt.NDArray[np.float32]] = []
	for i, m in enumerate(midi_notes):
		if i:
			parts.append(gap)
		parts.append(tone(midi_to_freq(m), note_seconds, waveform, velocity))
	if not parts:
		return np.zeros(0, dtype=np.float32)
	return np.concatenate(parts)


def render_challenge(
	challenge: Union[IntervalChallenge, ChordChallenge],
	timing: PlaybackTiming,
	waveform: str = "sine",
	volume: float = 1.0,
) -> npt.NDArray[np.float32]:
	return render_notes(
		challenge.midi_notes,
		note_seconds=timing.note_seconds,
		gap_seconds=timing.gap_seconds,
		waveform=waveform,
		velocity=timing.velocity * volume,
	)


def harmonic(midi_notes: Sequence[int], dur: float = 1.0, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""All notes sounding together, normalized to [-1, 1]."""
	if not midi_notes:
		return np.zeros(int(SR * dur), dtype=np.float32)
	x = np.sum([tone(midi_to_freq(m), dur, waveform) for m in midi_notes], axis=0).astype(np.float32)
	max_abs = float(np.max(np.abs(x))) if x.size else 1.0
	if max_abs > 0.0:
		x = (x / max_abs).astype(np.float32)
	return cast(npt.NDArray[np.float32], x)


def wav_bytes(x: npt.NDArray[np.float32]) -> bytes:
	buf = io.BytesIO()
	sf.write(buf, x, SR, format="WAV")
	return buf.getvalue()
