"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/Pomagotchi/settings.json

Usage::

    settings = load_settings()
    settings.backend = "json"
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "Pomagotchi"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"

BACKENDS = ("sqlite", "json")

# How long each kind of notification stays on screen.  "action" covers
# any notification carrying a button (the reset → Undo offer) and also
# bounds how long the undo backup stays usable.
DEFAULT_NOTIFICATION_DURATIONS_MS: dict[str, int] = {
    "success": 3000,
    "evolution": 5000,
    "xp": 3000,
    "warning": 8000,
    "error": 4000,
    "action": 8000,
}


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── persistence ───────────────────────────────────────────────────
    backend: str = "sqlite"                # sqlite | json

    # ── logging ───────────────────────────────────────────────────────
    log_level: str = "INFO"

    # ── notifications ─────────────────────────────────────────────────
    notification_durations_ms: dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_NOTIFICATION_DURATIONS_MS)
    )

    def duration_ms(self, kind: str) -> int:
        return self.notification_durations_ms.get(
            kind, DEFAULT_NOTIFICATION_DURATIONS_MS["success"],
        )

    @property
    def undo_window_seconds(self) -> float:
        return self.duration_ms("action") / 1000


def load_settings(path: Path = SETTINGS_PATH) -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            durations = dict(DEFAULT_NOTIFICATION_DURATIONS_MS)
            durations.update(filtered.get("notification_durations_ms") or {})
            filtered["notification_durations_ms"] = durations
            settings = Settings(**filtered)
            if settings.backend not in BACKENDS:
                logger.warning(
                    "Unknown backend %r in %s, using sqlite", settings.backend, path,
                )
                settings.backend = "sqlite"
            return settings
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
    return Settings()


def save_settings(settings: Settings, path: Path = SETTINGS_PATH) -> None:
    """Write settings to disk as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
