from typing import List, Tuple

import pytest

from earlessons.models import LessonSettings, PlaybackTiming


class RecordingOutput:
	def __init__(self) -> None:
		self.events: List[Tuple[str, int]] = []

	def note_on(self, midi: int, velocity: float = 0.7) -> None:
		self.events.append(("on", midi))

	def note_off(self, midi: int) -> None:
		self.events.append(("off", midi))

	def count(self, kind: str) -> int:
		return sum(1 for k, _ in self.events if k == kind)


@pytest.fixture
def output():
	return RecordingOutput()


@pytest.fixture
def fast_settings():
	timing = PlaybackTiming(note_seconds=0.02, gap_seconds=0.01)
	return LessonSettings(interval_timing=timing, chord_timing=timing, feedback_seconds=0.01)
