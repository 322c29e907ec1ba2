from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .models import (
	Attempt,
	ChallengeKind,
	ChallengeResult,
	ChordChallenge,
	IntervalChallenge,
	LessonScore,
	LessonSettings,
	LessonState,
	LessonStatus,
	SubmitOutcome,
)
from .notes import NoteLike, midi_to_note, to_midi
from .pool import generate_chord_pool, generate_interval_pool, select_random_challenges
from .theory import judge_answer

logger = logging.getLogger(__name__)

AnyChallenge = Union[IntervalChallenge, ChordChallenge]


class LessonStateError(RuntimeError):
	"""An operation was called in a session state that does not allow it."""


def should_reveal_name(attempts: int, settings: LessonSettings) -> bool:
	return attempts >= settings.reveal_name_after


def should_show_hints(attempts: int, settings: LessonSettings) -> bool:
	return attempts >= settings.show_hints_after


def start_state(challenges: Sequence[AnyChallenge]) -> LessonState:
	return LessonState(challenges=list(challenges), started=True)


def _require_active(state: LessonState) -> AnyChallenge:
	if not state.started or state.completed or not state.challenges:
		raise LessonStateError("no active challenge")
	return state.challenges[state.index]


def apply_answer(
	state: LessonState,
	played_notes: Sequence[str],
	played_midi: Sequence[int],
	settings: LessonSettings,
	now: float,
	valid: bool = True,
) -> Tuple[LessonState, SubmitOutcome]:
	"""Judge one answer against the current challenge and return the new state.

	`valid=False` marks an answer containing unparseable notes; it is recorded
	as an incorrect attempt.
	"""
	challenge = _require_active(state)
	if state.index in state.results:
		raise LessonStateError(f"challenge {state.index} is already resolved")

	correct, played_interval = judge_answer(challenge, played_midi) if valid else (False, None)
	attempts = state.attempts_on_current + 1
	attempt = Attempt(
		played_notes=tuple(played_notes),
		played_midi=tuple(played_midi),
		correct=correct,
		played_interval=played_interval,
		timestamp=now,
	)
	history = state.history + [attempt]
	is_last = correct or attempts >= settings.max_attempts

	results = state.results
	if is_last:
		results = dict(results)
		results[state.index] = ChallengeResult(
			challenge=challenge,
			attempts=history,
			succeeded=correct,
			attempts_count=attempts,
		)

	new_state = state.model_copy(update={
		"attempts_on_current": attempts,
		"history": history,
		"results": results,
	})
	return new_state, SubmitOutcome(correct=correct, is_last_attempt=is_last, attempt=attempt)


def apply_advance(state: LessonState) -> LessonState:
	_require_active(state)
	if state.index not in state.results:
		raise LessonStateError(f"challenge {state.index} has not been resolved")
	nxt = state.index + 1
	if nxt >= len(state.challenges):
		return state.model_copy(update={"completed": True})
	return state.model_copy(update={"index": nxt, "attempts_on_current": 0, "history": []})


def score_of(state: LessonState) -> Optional[LessonScore]:
	if not state.completed:
		return None
	results = [state.results[i] for i in sorted(state.results)]
	return LessonScore(
		total_challenges=len(state.challenges),
		correct_count=sum(1 for r in results if r.succeeded),
		results=results,
	)


class LessonSession:
	"""One run of a fixed number of interval or chord challenges.

	The session record is only changed through the methods below; each of them
	swaps `state` for the result of a pure transition.
	"""

	def __init__(
		self,
		kind: ChallengeKind = "interval",
		settings: Optional[LessonSettings] = None,
		rng: Optional[np.random.Generator] = None,
		pool: Optional[Sequence[AnyChallenge]] = None,
		clock: Callable[[], float] = time.time,
	) -> None:
		self.kind = kind
		self.settings = settings or LessonSettings()
		self.rng = rng if rng is not None else np.random.default_rng()
		self._pool = list(pool) if pool is not None else None
		self.clock = clock
		self.state = LessonState()

	def build_pool(self) -> List[AnyChallenge]:
		if self._pool is not None:
			return list(self._pool)
		if self.kind == "chord":
			return list(generate_chord_pool(self.settings.chord_roots))
		return list(generate_interval_pool(self.settings.interval_root))

	# Operations

	def start_lesson(self) -> None:
		selected = select_random_challenges(self.build_pool(), self.settings.challenges_per_lesson, self.rng)
		self.state = start_state(selected)
		logger.info("Started %s lesson: %s", self.kind, ", ".join(c.display_name for c in selected))

	def submit_answer(self, played: Sequence[NoteLike]) -> SubmitOutcome:
		played_midi: List[int] = []
		played_notes: List[str] = []
		valid = True
		for note in played:
			m = to_midi(note)
			if m is None:
				# Malformed notes can never match; record them as given
				logger.warning("Unparseable note %r in answer", note)
				played_notes.append(str(note))
				valid = False
				continue
			played_midi.append(m)
			played_notes.append(midi_to_note(m))
		self.state, outcome = apply_answer(
			self.state, played_notes, played_midi, self.settings, self.clock(), valid=valid,
		)
		if outcome.is_last_attempt:
			logger.info(
				"Challenge %d (%s) resolved: %s after %d attempt(s)",
				self.state.index + 1,
				self.state.challenges[self.state.index].display_name,
				"succeeded" if outcome.correct else "failed",
				self.state.attempts_on_current,
			)
		return outcome

	def move_to_next_challenge(self) -> None:
		self.state = apply_advance(self.state)
		if self.state.completed:
			score = self.score
			logger.info("Lesson complete: %d/%d", score.correct_count, score.total_challenges)

	def reset_lesson(self) -> None:
		self.state = LessonState()

	# Observers

	@property
	def status(self) -> LessonStatus:
		if self.state.completed:
			return "complete"
		if self.state.started:
			return "in progress"
		return "not started"

	@property
	def challenges(self) -> List[AnyChallenge]:
		return list(self.state.challenges)

	@property
	def current_challenge(self) -> Optional[AnyChallenge]:
		if self.status != "in progress" or not self.state.challenges:
			return None
		return self.state.challenges[self.state.index]

	@property
	def challenge_index(self) -> int:
		return self.state.index

	@property
	def attempts(self) -> int:
		return self.state.attempts_on_current

	@property
	def current_attempts(self) -> List[Attempt]:
		return list(self.state.history)

	@property
	def is_resolved(self) -> bool:
		return self.state.started and self.state.index in self.state.results

	@property
	def is_complete(self) -> bool:
		return self.state.completed

	@property
	def results(self) -> List[ChallengeResult]:
		return [self.state.results[i] for i in sorted(self.state.results)]

	@property
	def score(self) -> Optional[LessonScore]:
		return score_of(self.state)

	@property
	def should_reveal_name(self) -> bool:
		return should_reveal_name(self.state.attempts_on_current, self.settings)

	@property
	def should_show_hints(self) -> bool:
		return should_show_hints(self.state.attempts_on_current, self.settings)
