from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .models import LessonSettings

logger = logging.getLogger(__name__)

ENV_HOME = "EARLESSONS_HOME"
ENV_LOG_LEVEL = "EARLESSONS_LOG_LEVEL"


def configure_logging(level: Optional[str] = None) -> int:
	name = (level or os.environ.get(ENV_LOG_LEVEL) or "WARNING").upper()
	resolved = logging.getLevelName(name)
	if not isinstance(resolved, int):
		resolved = logging.WARNING
	logging.basicConfig(
		level=resolved,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)
	return resolved


def _data_path() -> Path:
	override = os.environ.get(ENV_HOME)
	dir_ = Path(override) if override else Path.home() / ".earlessons"
	dir_.mkdir(parents=True, exist_ok=True)
	return dir_ / "settings.json"


def _load_raw() -> Dict[str, Any]:
	p = _data_path()
	if not p.exists():
		return {}
	try:
		data = json.loads(p.read_text())
	except (OSError, ValueError) as e:
		logger.warning("Could not read %s, using defaults: %s", p, e)
		return {}
	return data if isinstance(data, dict) else {}


def load_settings() -> LessonSettings:
	obj = _load_raw().get("settings", {})
	if not isinstance(obj, dict):
		return LessonSettings()
	try:
		return LessonSettings.model_validate(obj)
	except ValidationError as e:
		logger.warning("Invalid settings in %s, using defaults: %s", _data_path(), e)
		return LessonSettings()


def save_settings(s: LessonSettings) -> Path:
	p = _data_path()
	p.write_text(json.dumps({"settings": s.model_dump()}, indent=2))
	return p
