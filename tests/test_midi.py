import io

import mido

from earlessons.midi import challenge_to_midi_file, midi_bytes
from earlessons.models import PlaybackTiming
from earlessons.theory import CHORDS, INTERVALS, make_chord_challenge, make_interval_challenge


def note_messages(mid):
	return [m for m in mid.tracks[0] if m.type in ("note_on", "note_off")]


def test_interval_file_is_sequential():
	c = make_interval_challenge(60, INTERVALS["major 3rd"], "descending")
	msgs = note_messages(challenge_to_midi_file(c, PlaybackTiming()))
	assert [(m.type, m.note) for m in msgs] == [("note_on", 60), ("note_off", 60), ("note_on", 56), ("note_off", 56)]
	assert msgs[0].velocity == 89
	assert msgs[2].time > 0


def test_file_length_matches_timing():
	c = make_chord_challenge(60, CHORDS["major"])
	timing = PlaybackTiming(note_seconds=0.4, gap_seconds=0.1)
	mid = challenge_to_midi_file(c, timing)
	assert abs(mid.length - (3 * 0.4 + 2 * 0.1)) < 0.01


def test_midi_bytes_load_back():
	c = make_chord_challenge(62, CHORDS["diminished"])
	data = midi_bytes(c, PlaybackTiming(note_seconds=0.4))
	mid = mido.MidiFile(file=io.BytesIO(data))
	ons = [m.note for m in note_messages(mid) if m.type == "note_on"]
	assert ons == [62, 65, 68]
