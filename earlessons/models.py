from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .notes import parse_note


Direction = Literal["ascending", "descending", "none"]
ChallengeKind = Literal["interval", "chord"]
Waveform = Literal["sine", "triangle", "saw"]
Mode = Literal["input", "output"]
Feedback = Literal["idle", "correct", "incorrect", "final-fail"]
LessonStatus = Literal["not started", "in progress", "complete"]


class IntervalDefinition(BaseModel):
	model_config = ConfigDict(frozen=True)

	name: str
	semitones: int = Field(ge=0)
	short_name: str


class ChordDefinition(BaseModel):
	model_config = ConfigDict(frozen=True)

	name: str
	offsets: Tuple[int, ...]
	short_name: str
	display_name: str


class IntervalChallenge(BaseModel):
	model_config = ConfigDict(frozen=True)

	kind: Literal["interval"] = "interval"
	interval: IntervalDefinition
	direction: Direction
	root_note: str
	root_midi: int = Field(ge=0, le=127)
	target_note: str
	target_midi: int = Field(ge=0, le=127)
	display_name: str

	@property
	def key(self) -> Tuple[str, ...]:
		return ("interval", self.interval.name, self.direction)

	@property
	def notes(self) -> Tuple[str, ...]:
		return (self.root_note, self.target_note)

	@property
	def midi_notes(self) -> Tuple[int, ...]:
		return (self.root_midi, self.target_midi)

	@property
	def answer_size(self) -> int:
		return 2


class ChordChallenge(BaseModel):
	model_config = ConfigDict(frozen=True)

	kind: Literal["chord"] = "chord"
	chord: ChordDefinition
	root_note: str
	root_midi: int = Field(ge=0, le=127)
	notes: Tuple[str, ...]
	midi_notes: Tuple[int, ...]
	display_name: str

	@property
	def key(self) -> Tuple[str, ...]:
		return ("chord", self.root_note, self.chord.name)

	@property
	def answer_size(self) -> int:
		return len(self.midi_notes)


Challenge = Annotated[Union[IntervalChallenge, ChordChallenge], Field(discriminator="kind")]


class Attempt(BaseModel):
	model_config = ConfigDict(frozen=True)

	played_notes: Tuple[str, ...]
	played_midi: Tuple[int, ...]
	correct: bool
	# Detected interval name; None for chords or distances outside the catalog
	played_interval: Optional[str] = None
	timestamp: float


class ChallengeResult(BaseModel):
	challenge: Challenge
	attempts: List[Attempt]
	succeeded: bool
	attempts_count: int


class LessonScore(BaseModel):
	total_challenges: int
	correct_count: int
	results: List[ChallengeResult]


class SubmitOutcome(BaseModel):
	correct: bool
	is_last_attempt: bool
	attempt: Attempt


class LessonState(BaseModel):
	challenges: List[Challenge] = Field(default_factory=list)
	index: int = 0
	attempts_on_current: int = 0
	history: List[Attempt] = Field(default_factory=list)
	results: Dict[int, ChallengeResult] = Field(default_factory=dict)
	started: bool = False
	completed: bool = False


class PlaybackTiming(BaseModel):
	note_seconds: float = Field(default=0.5, gt=0.0)
	gap_seconds: float = Field(default=0.1, ge=0.0)
	velocity: float = Field(default=0.7, ge=0.0, le=1.0)


class LessonSettings(BaseModel):
	challenges_per_lesson: int = Field(default=5, ge=1, le=50)
	max_attempts: int = Field(default=7, ge=1, le=50)
	reveal_name_after: int = Field(default=3, ge=1)
	show_hints_after: int = Field(default=4, ge=1)
	interval_root: str = Field(default="C4")
	chord_roots: List[str] = Field(default=["C4"], min_length=1)
	interval_timing: PlaybackTiming = Field(default_factory=PlaybackTiming)
	chord_timing: PlaybackTiming = Field(default_factory=lambda: PlaybackTiming(note_seconds=0.4))
	feedback_seconds: float = Field(default=1.0, ge=0.0)
	waveform: Waveform = Field(default="sine")
	volume: float = Field(default=0.9, ge=0.0, le=1.0)
	keyboard_start_note: int = Field(default=48, ge=0, le=107)

	@field_validator("interval_root")
	@classmethod
	def _check_root(cls, v: str) -> str:
		if parse_note(v) is None:
			raise ValueError(f"not a note: {v!r}")
		return v

	@field_validator("chord_roots")
	@classmethod
	def _check_roots(cls, v: List[str]) -> List[str]:
		bad = [n for n in v if parse_note(n) is None]
		if bad:
			raise ValueError(f"not notes: {bad!r}")
		return v

	def timing_for(self, kind: ChallengeKind) -> PlaybackTiming:
		return self.chord_timing if kind == "chord" else self.interval_timing
