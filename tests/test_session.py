import numpy as np
import pytest

from earlessons.models import LessonSettings, LessonState
from earlessons.pool import generate_chord_pool
from earlessons.session import LessonSession, LessonStateError, apply_advance, apply_answer, start_state
from earlessons.theory import CHORDS, INTERVALS, make_chord_challenge, make_interval_challenge


def p5_session(**kw):
	challenge = make_interval_challenge(60, INTERVALS["perfect 5th"], "ascending")
	session = LessonSession("interval", pool=[challenge], clock=lambda: 123.0, **kw)
	session.start_lesson()
	return session


def test_new_session_is_not_started():
	session = LessonSession()
	assert session.status == "not started"
	assert session.current_challenge is None
	assert session.score is None
	assert not session.should_reveal_name and not session.should_show_hints


def test_start_lesson_picks_five_unique_challenges():
	session = LessonSession("interval", rng=np.random.default_rng(0))
	session.start_lesson()
	assert session.status == "in progress"
	assert len(session.challenges) == 5
	assert len({c.key for c in session.challenges}) == 5
	assert session.challenge_index == 0
	assert session.attempts == 0


def test_chord_lesson_is_capped_by_pool_size():
	session = LessonSession("chord", rng=np.random.default_rng(0))
	session.start_lesson()
	assert len(session.challenges) == 4


def test_correct_answer_resolves_challenge():
	session = p5_session()
	outcome = session.submit_answer([60, 67])
	assert outcome.correct and outcome.is_last_attempt
	assert session.is_resolved
	assert session.results[0].succeeded
	assert session.results[0].attempts_count == 1
	assert outcome.attempt.timestamp == 123.0


def test_wrong_answers_progress_hints_then_fail():
	session = p5_session()
	outcome = session.submit_answer(["C4", "C4"])
	assert not outcome.correct and not outcome.is_last_attempt
	assert session.attempts == 1
	assert outcome.attempt.played_interval == "unison"

	session.submit_answer([60, 60])
	assert not session.should_reveal_name
	session.submit_answer([60, 60])
	assert session.should_reveal_name and not session.should_show_hints
	session.submit_answer([60, 60])
	assert session.should_show_hints

	for _ in range(2):
		assert not session.submit_answer([60, 60]).is_last_attempt
	last = session.submit_answer([60, 60])
	assert last.is_last_attempt and not last.correct
	result = session.results[0]
	assert not result.succeeded
	assert result.attempts_count == 7
	assert len(result.attempts) == 7


def test_success_after_failures_keeps_full_history():
	session = p5_session()
	session.submit_answer([60, 64])
	session.submit_answer([60, 67])
	result = session.results[0]
	assert result.succeeded
	assert [a.correct for a in result.attempts] == [False, True]


def test_malformed_notes_count_as_wrong_attempt():
	session = p5_session()
	outcome = session.submit_answer(["C4", "X9"])
	assert not outcome.correct
	assert outcome.attempt.played_notes == ("C4", "X9")
	assert session.attempts == 1


def test_submit_after_resolution_is_a_protocol_error():
	session = p5_session()
	session.submit_answer([60, 67])
	with pytest.raises(LessonStateError):
		session.submit_answer([60, 67])


def test_submit_without_lesson_is_a_protocol_error():
	with pytest.raises(LessonStateError):
		LessonSession().submit_answer([60, 67])


def test_advance_requires_resolution():
	session = p5_session()
	with pytest.raises(LessonStateError):
		session.move_to_next_challenge()


def test_advance_resets_attempts_and_completes_once():
	pool = generate_chord_pool(["C4"])
	session = LessonSession("chord", pool=pool, settings=LessonSettings(challenges_per_lesson=2), rng=np.random.default_rng(5))
	session.start_lesson()
	first = session.current_challenge
	session.submit_answer(list(first.midi_notes)[:2])
	session.submit_answer(list(first.midi_notes))
	assert session.attempts == 2
	session.move_to_next_challenge()
	assert session.challenge_index == 1
	assert session.attempts == 0
	assert session.current_attempts == []
	assert not session.is_complete

	session.submit_answer([0, 1, 2])
	for _ in range(6):
		session.submit_answer([0, 1, 2])
	session.move_to_next_challenge()
	assert session.is_complete
	assert session.current_challenge is None
	score = session.score
	assert score.total_challenges == 2
	assert score.correct_count == 1
	with pytest.raises(LessonStateError):
		session.move_to_next_challenge()


def test_full_interval_lesson_scores_correct_count():
	session = LessonSession("interval", rng=np.random.default_rng(11))
	session.start_lesson()
	for i in range(5):
		c = session.current_challenge
		if i % 2 == 0:
			session.submit_answer(list(c.midi_notes))
		else:
			while not session.submit_answer([40, 41 + 13]).is_last_attempt:
				pass
		session.move_to_next_challenge()
	assert session.is_complete
	score = session.score
	assert score.total_challenges == 5
	assert score.correct_count == sum(1 for r in score.results if r.succeeded) == 3


def test_reset_returns_to_not_started():
	session = p5_session()
	session.submit_answer([60, 67])
	session.reset_lesson()
	assert session.status == "not started"
	assert session.results == []
	assert session.attempts == 0


def test_restart_leaves_complete_state():
	session = p5_session()
	session.submit_answer([60, 67])
	session.move_to_next_challenge()
	assert session.is_complete
	session.start_lesson()
	assert session.status == "in progress"
	assert not session.is_complete


def test_transitions_do_not_mutate_input_state():
	challenge = make_chord_challenge(60, CHORDS["major"])
	state = start_state([challenge])
	settings = LessonSettings()
	after, outcome = apply_answer(state, ["C4", "E4", "G4"], [60, 64, 67], settings, 0.0)
	assert outcome.correct
	assert state.attempts_on_current == 0
	assert state.results == {}
	done = apply_advance(after)
	assert done.completed and not after.completed


def test_apply_answer_on_empty_state_raises():
	with pytest.raises(LessonStateError):
		apply_answer(LessonState(), [], [], LessonSettings(), 0.0)
