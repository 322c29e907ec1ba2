import logging

import pytest
from pydantic import ValidationError

from earlessons.config import configure_logging, load_settings, save_settings
from earlessons.models import LessonSettings


@pytest.fixture
def home(tmp_path, monkeypatch):
	monkeypatch.setenv("EARLESSONS_HOME", str(tmp_path))
	return tmp_path


def test_defaults_match_lesson_rules():
	s = LessonSettings()
	assert s.challenges_per_lesson == 5
	assert s.max_attempts == 7
	assert s.reveal_name_after == 3
	assert s.show_hints_after == 4
	assert s.interval_timing.note_seconds == 0.5
	assert s.chord_timing.note_seconds == 0.4
	assert s.timing_for("chord") is s.chord_timing


def test_invalid_notes_rejected():
	with pytest.raises(ValidationError):
		LessonSettings(interval_root="Q4")
	with pytest.raises(ValidationError):
		LessonSettings(chord_roots=["C4", "nope"])


def test_load_without_file_gives_defaults(home):
	assert load_settings() == LessonSettings()


def test_save_then_load(home):
	s = LessonSettings(chord_roots=["C4", "G4"], volume=0.5, waveform="saw")
	path = save_settings(s)
	assert path.parent == home
	assert load_settings() == s


def test_corrupt_file_falls_back(home, caplog):
	(home / "settings.json").write_text("{not json")
	with caplog.at_level(logging.WARNING):
		assert load_settings() == LessonSettings()
	assert "using defaults" in caplog.text


def test_configure_logging_reads_env(monkeypatch):
	monkeypatch.setenv("EARLESSONS_LOG_LEVEL", "debug")
	assert configure_logging() == logging.DEBUG
	assert configure_logging("bogus") == logging.WARNING


def test_invalid_settings_fall_back(home, caplog):
	(home / "settings.json").write_text('{"settings": {"interval_root": "Q4", "chord_roots": ["C4", "nope"]}}')
	with caplog.at_level(logging.WARNING):
		assert load_settings() == LessonSettings()
	assert "Invalid settings" in caplog.text
	assert "using defaults" in caplog.text
