import streamlit as st
import pandas as pd
import altair as alt
from typing import Any, List

from earlessons.audio import harmonic, render_notes, wav_bytes
from earlessons.config import configure_logging, load_settings, save_settings
from earlessons.coordinator import ModeCoordinator
from earlessons.midi import midi_bytes
from earlessons.models import ChallengeKind, LessonSettings, Waveform
from earlessons.notes import midi_to_note
from earlessons.session import LessonSession


configure_logging()
st.set_page_config(page_title="Ear Lessons", page_icon=None, layout="centered")

KINDS = {"Intervals": "interval", "Chords": "chord"}
WHITE_KEY_ROOTS = ["C4", "D4", "E4", "F4", "G4", "A4", "B4"]
PIANO_START = 48  # C3
PIANO_KEYS = 25


def new_coordinator(kind: ChallengeKind, settings: LessonSettings) -> ModeCoordinator:
	# Audio is pre-rendered for the browser, so the coordinator only gates input
	return ModeCoordinator(LessonSession(kind, settings))


def get_state() -> Any:
	if "settings" not in st.session_state:
		st.session_state.settings = load_settings()
	if "kind" not in st.session_state:
		st.session_state.kind = "interval"
	if "coord" not in st.session_state:
		st.session_state.coord = new_coordinator(st.session_state.kind, st.session_state.settings)
	if "trigger_autoplay" not in st.session_state:
		st.session_state.trigger_autoplay = False
	if "play_version" not in st.session_state:
		st.session_state.play_version = 0
	return st.session_state


def sidebar_controls(s: LessonSettings, kind: str) -> tuple:
	st.sidebar.header("Settings")
	kind_label = st.sidebar.selectbox("Lesson", list(KINDS), index=list(KINDS.values()).index(kind))
	roots = st.sidebar.multiselect("Chord roots", options=WHITE_KEY_ROOTS, default=[r for r in s.chord_roots if r in WHITE_KEY_ROOTS] or ["C4"])
	waveform_str = st.sidebar.selectbox("Waveform", ["sine", "triangle", "saw"], index=["sine", "triangle", "saw"].index(s.waveform))
	volume = st.sidebar.slider("Volume", min_value=0.0, max_value=1.0, value=s.volume, step=0.05)

	waveform: Waveform = waveform_str  # type: ignore[assignment]
	new_s = s.model_copy(update={"chord_roots": roots or s.chord_roots, "waveform": waveform, "volume": volume})
	if new_s != s:
		save_settings(new_s)
	new_kind: ChallengeKind = KINDS[kind_label]  # type: ignore[assignment]
	return new_s, new_kind


@st.cache_data(show_spinner=False)
def _cached_audio_bytes(midi_notes: tuple, note_seconds: float, gap_seconds: float, waveform: str, velocity: float, salt: int) -> bytes:
	return wav_bytes(render_notes(midi_notes, note_seconds, gap_seconds, waveform, velocity))


def autoplay(state: Any) -> None:
	state.trigger_autoplay = True
	state.play_version += 1


def start_new_lesson(state: Any) -> None:
	state.coord = new_coordinator(state.kind, state.settings)
	state.coord.session.start_lesson()
	autoplay(state)


def on_key(state: Any, midi: int) -> None:
	# Dropped unless the learner has opened input for the current challenge
	state.coord.accept_note(midi)


def piano(state: Any) -> None:
	cols = st.columns(12)
	for i in range(PIANO_KEYS):
		m = PIANO_START + i
		with cols[i % 12]:
			if st.button(midi_to_note(m), key=f"key-{m}", use_container_width=True):
				on_key(state, m)
				st.rerun()


def summary(session: LessonSession) -> None:
	score = session.score
	st.success(f"Lesson complete: {score.correct_count} / {score.total_challenges}")
	rows: List[dict] = []
	for i, r in enumerate(score.results, start=1):
		rows.append({"#": i, "challenge": r.challenge.display_name, "attempts": r.attempts_count, "succeeded": r.succeeded})
	df = pd.DataFrame(rows)
	st.dataframe(df, hide_index=True)
	chart = alt.Chart(df).mark_bar().encode(
		x=alt.X("challenge:N", sort=None),
		y=alt.Y("attempts:Q"),
		color=alt.Color("succeeded:N"),
		tooltip=["challenge", "attempts", "succeeded"],
	).properties(width=400, height=250)
	st.altair_chart(chart, use_container_width=True)


def main() -> None:
	state = get_state()
	s, kind = sidebar_controls(state.settings, state.kind)
	if kind != state.kind or s != state.settings:
		state.settings = s
		state.kind = kind
		state.coord = new_coordinator(kind, s)

	st.title("Ear Lessons")

	coord: ModeCoordinator = state.coord
	session = coord.session
	if session.status == "not started":
		if st.button("Start Lesson", use_container_width=True):
			start_new_lesson(state)
			st.rerun()
		return

	if session.is_complete:
		summary(session)
		if st.button("New Lesson"):
			start_new_lesson(state)
			st.rerun()
		return

	challenge = session.current_challenge
	st.progress(session.challenge_index / len(session.challenges), text=f"Challenge {session.challenge_index + 1} of {len(session.challenges)}")
	st.write(f"Attempts: {session.attempts} / {s.max_attempts}")
	if session.should_reveal_name:
		st.subheader(challenge.display_name)
	if session.should_show_hints:
		st.info("Notes: " + " ".join(challenge.notes))

	if coord.feedback == "correct":
		st.success("Correct!")
	elif coord.feedback == "final-fail":
		st.error(f"Out of attempts, it was {challenge.display_name}")
	elif coord.feedback == "incorrect":
		st.error("Not quite")

	player = st.empty()
	timing = s.timing_for(challenge.kind)
	bytes_ = _cached_audio_bytes(challenge.midi_notes, timing.note_seconds, timing.gap_seconds, s.waveform, timing.velocity * s.volume, state.play_version)
	if state.trigger_autoplay:
		player.empty()
		player.audio(bytes_, format="audio/wav", autoplay=True)
		state.trigger_autoplay = False
	else:
		player.audio(bytes_, format="audio/wav", autoplay=False)

	if challenge.kind == "chord" and session.should_show_hints:
		st.audio(wav_bytes(harmonic(challenge.midi_notes, dur=1.0, waveform=s.waveform)), format="audio/wav")

	if coord.feedback != "idle":
		label = "Next" if session.is_resolved else "Listen again"
		if st.button(label, use_container_width=True):
			coord.settle_feedback()
			if not session.is_complete:
				autoplay(state)
			st.rerun()
	elif coord.mode == "output":
		st.caption("Listen to the challenge, then answer on the keyboard")
		if st.button("Ready to answer", use_container_width=True):
			coord.open_input()
			st.rerun()
	else:
		st.caption(f"Play {challenge.answer_size} notes ({len(coord.pending_notes)} so far)")
		piano(state)
		if st.button("Replay"):
			coord.close_input()
			autoplay(state)
			st.rerun()

	st.download_button("Download MIDI", data=midi_bytes(challenge, s.timing_for(challenge.kind)), file_name="challenge.mid", mime="audio/midi")

	st.markdown("---")
	if st.button("End Lesson"):
		state.coord = new_coordinator(state.kind, state.settings)
		st.rerun()


if __name__ == "__main__":
	main()
