from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Union

from .models import ChordChallenge, Feedback, IntervalChallenge, LessonSettings, Mode, SubmitOutcome
from .notes import NoteLike, to_midi
from .playback import NoteOutput, NullNoteOutput, PlaybackObserver, PlaybackSequencer
from .session import LessonSession

logger = logging.getLogger(__name__)


class AnswerBuffer:
	"""Collects played notes until a challenge's answer is complete."""

	def __init__(self) -> None:
		self.notes: List[int] = []

	def __len__(self) -> int:
		return len(self.notes)

	def clear(self) -> None:
		self.notes = []

	def add(self, midi: int, challenge: Union[IntervalChallenge, ChordChallenge]) -> Optional[List[int]]:
		"""Add a note; return the full answer once `answer_size` notes are in, else None."""
		self.notes.append(midi)
		if len(self.notes) < challenge.answer_size:
			return None
		answer = self.notes
		self.notes = []
		return answer


class _HintObserver(PlaybackObserver):
	def __init__(self, coordinator: "ModeCoordinator", observer: PlaybackObserver) -> None:
		self.coordinator = coordinator
		self.observer = observer

	def note_played(self, midi: int) -> None:
		if self.coordinator.session.should_show_hints:
			self.observer.note_played(midi)


class ModeCoordinator:
	"""Decides whether a note event reaches the lesson session.

	Every input adapter calls `handle_note_on` / `handle_note_off`. Note-on
	events are dropped unless the mode is "input" and no answer is being
	graded. The mode is only changed here: "output" while a challenge plays or
	feedback is shown, "input" while waiting for the learner.
	"""

	def __init__(
		self,
		session: LessonSession,
		sequencer: Optional[PlaybackSequencer] = None,
		output: Optional[NoteOutput] = None,
		settings: Optional[LessonSettings] = None,
		hint_observer: Optional[PlaybackObserver] = None,
	) -> None:
		self.session = session
		self.settings = settings or session.settings
		self.output = output or NullNoteOutput()
		self.sequencer = sequencer or PlaybackSequencer(self.output, self.settings)
		if hint_observer is not None:
			self.sequencer.observer = _HintObserver(self, hint_observer)
		self.buffer = AnswerBuffer()
		self._mode: Mode = "output"
		self._feedback: Feedback = "idle"
		self._grading = False
		self._follow_up: Optional[asyncio.Task] = None
		self._presenting: Optional[asyncio.Task] = None

	@property
	def mode(self) -> Mode:
		return self._mode

	@property
	def feedback(self) -> Feedback:
		return self._feedback

	@property
	def pending_notes(self) -> List[int]:
		return list(self.buffer.notes)

	def _set_mode(self, mode: Mode) -> None:
		if mode != self._mode:
			logger.debug("Mode %s -> %s", self._mode, mode)
		self._mode = mode

	# Shared note-event handler

	def accept_note(self, note: NoteLike, velocity: float = 0.7) -> Optional[SubmitOutcome]:
		"""Run a note-on through the gate and grade the answer once it is complete.

		Nothing is scheduled: the mode stays at output with the feedback set
		until `settle_feedback` and `open_input` (or the async follow-up) move on.
		"""
		if self._mode != "input" or self._grading:
			logger.debug("Dropped note-on %r in %s mode", note, self._mode)
			return None
		challenge = self.session.current_challenge
		midi = to_midi(note)
		if challenge is None or midi is None:
			logger.debug("Dropped note-on %r: nothing to answer", note)
			return None

		self.output.note_on(midi, velocity)
		answer = self.buffer.add(midi, challenge)
		if answer is None:
			return None

		self._grading = True
		self._set_mode("output")
		outcome = self.session.submit_answer(answer)
		if outcome.correct:
			self._feedback = "correct"
		elif outcome.is_last_attempt:
			self._feedback = "final-fail"
		else:
			self._feedback = "incorrect"
		return outcome

	def handle_note_on(self, note: NoteLike, velocity: float = 0.7) -> Optional[SubmitOutcome]:
		# Must run on the event loop; the follow-up is scheduled there
		loop = asyncio.get_running_loop()
		outcome = self.accept_note(note, velocity)
		if outcome is not None:
			self._follow_up = loop.create_task(self._after_feedback())
		return outcome

	def handle_note_off(self, note: NoteLike) -> None:
		# Releases always pass so a note held across a mode change cannot hang
		midi = to_midi(note)
		if midi is not None:
			self.output.note_off(midi)

	# Mode changes for front ends that present the challenge themselves

	def settle_feedback(self) -> None:
		"""Clear the feedback and advance past a resolved challenge. The mode stays output."""
		self._feedback = "idle"
		self._grading = False
		if self.session.current_challenge is not None and self.session.is_resolved:
			self.session.move_to_next_challenge()

	def open_input(self) -> bool:
		if self._grading or self._presenting is not None or self._feedback != "idle":
			return False
		if self.session.current_challenge is None:
			return False
		self._set_mode("input")
		return True

	def close_input(self) -> None:
		self.buffer.clear()
		self._feedback = "idle"
		self._grading = False
		self._set_mode("output")

	# Orchestration

	async def _present_current(self) -> None:
		challenge = self.session.current_challenge
		if challenge is None:
			return
		self._set_mode("output")
		task = asyncio.ensure_future(self.sequencer.play(challenge))
		self._presenting = task
		try:
			await asyncio.wait([task])
		finally:
			if not task.done():
				task.cancel()
			if self._presenting is task:
				self._presenting = None
		# A cancelled playback leaves the mode to whoever stopped it
		if not task.cancelled() and task.result():
			self.open_input()

	async def _after_feedback(self) -> None:
		try:
			await asyncio.sleep(self.settings.feedback_seconds)
			self.settle_feedback()
			if self.session.is_complete:
				return
			await self._present_current()
		finally:
			self._grading = False

	async def start_lesson(self) -> None:
		await self.stop()
		self.session.start_lesson()
		await self._present_current()

	async def replay(self) -> bool:
		"""Play the current challenge again and reopen input.

		Refused while a challenge is playing or an answer is being graded.
		"""
		if self._grading or self._presenting is not None or self.session.current_challenge is None:
			return False
		self.buffer.clear()
		await self._present_current()
		return True

	async def wait_idle(self) -> None:
		task = self._follow_up
		if task is not None and not task.done():
			await task

	async def stop(self) -> None:
		"""Cancel playback and pending feedback, and wait for both to wind down."""
		self.sequencer.cancel()
		tasks = [t for t in (self._follow_up, self._presenting) if t is not None and not t.done()]
		self._follow_up = None
		self._presenting = None
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.wait(tasks)
		self.close_input()

	async def reset(self) -> None:
		await self.stop()
		self.session.reset_lesson()
