"""UI settings: theme and language.

Read once at server start and written back on every change. This is the
only state the app keeps across restarts.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

PROJECT_ROOT = Path(__file__).parent

THEMES = ("light", "dark")
LANGUAGES = ("en", "ar")
RTL_LANGUAGES = ("ar",)


def settings_path() -> Path:
    return Path(os.getenv("LISTING_SETTINGS_PATH", str(PROJECT_ROOT / ".ui_settings.json")))


@dataclass
class UISettings:
    theme: str = "light"
    language: str = "en"

    @property
    def direction(self) -> str:
        return "rtl" if self.language in RTL_LANGUAGES else "ltr"

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self), "direction": self.direction}


def load_settings(path: Optional[Path] = None) -> UISettings:
    """Read settings from disk; unknown or missing values fall back to defaults."""
    path = path or settings_path()
    if not path.exists():
        return UISettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"   ⚠️  Could not read UI settings {path}: {e}")
        return UISettings()

    defaults = UISettings()
    theme = data.get("theme") if isinstance(data, dict) else None
    language = data.get("language") if isinstance(data, dict) else None
    return UISettings(
        theme=theme if theme in THEMES else defaults.theme,
        language=language if language in LANGUAGES else defaults.language,
    )


def save_settings(settings: UISettings, path: Optional[Path] = None) -> None:
    path = path or settings_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
    except OSError as e:
        # in-memory value stays current
        print(f"   ⚠️  Could not save UI settings {path}: {e}")


def update_settings(
    current: UISettings,
    *,
    theme: Optional[str] = None,
    language: Optional[str] = None,
    path: Optional[Path] = None,
) -> UISettings:
    """Validate, apply and persist a settings change. Raises ValueError on unknown values."""
    if theme is not None and theme not in THEMES:
        raise ValueError(f"Unknown theme: {theme}")
    if language is not None and language not in LANGUAGES:
        raise ValueError(f"Unknown language: {language}")

    updated = UISettings(
        theme=theme if theme is not None else current.theme,
        language=language if language is not None else current.language,
    )
    save_settings(updated, path)
    return updated
