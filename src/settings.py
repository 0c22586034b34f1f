"""Display settings stored in a key-value settings file."""

from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values, set_key

from errors import SettingsError

SETTINGS_DIR = Path.home() / ".famgraph"
SETTINGS_FILE = SETTINGS_DIR / "settings.env"

PREFIX = "FAMGRAPH_"
LANGUAGES = ("en", "ja")
THEMES = ("default", "pastel", "monochrome")


@dataclass
class Settings:
    language: str = "en"
    show_grid: bool = True
    grid_size: float = 50.0
    theme: str = "default"


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise SettingsError(f"{key}: expected a boolean, got {value!r}")


def load_settings(path: Path = SETTINGS_FILE) -> Settings:
    """Read settings, falling back to defaults for missing keys or a missing file."""
    settings = Settings()
    if not path.exists():
        return settings

    values = dotenv_values(path)

    language = values.get(f"{PREFIX}LANGUAGE")
    if language is not None:
        if language not in LANGUAGES:
            raise SettingsError(f"{PREFIX}LANGUAGE: unsupported language {language!r}")
        settings.language = language

    show_grid = values.get(f"{PREFIX}SHOW_GRID")
    if show_grid is not None:
        settings.show_grid = _parse_bool(f"{PREFIX}SHOW_GRID", show_grid)

    grid_size = values.get(f"{PREFIX}GRID_SIZE")
    if grid_size is not None:
        try:
            settings.grid_size = float(grid_size)
        except ValueError:
            raise SettingsError(f"{PREFIX}GRID_SIZE: expected a number, got {grid_size!r}") from None
        if settings.grid_size <= 0:
            raise SettingsError(f"{PREFIX}GRID_SIZE: must be positive, got {grid_size!r}")

    theme = values.get(f"{PREFIX}THEME")
    if theme is not None:
        if theme not in THEMES:
            raise SettingsError(f"{PREFIX}THEME: unknown theme {theme!r}")
        settings.theme = theme

    return settings


def save_settings(settings: Settings, path: Path = SETTINGS_FILE):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    set_key(path, f"{PREFIX}LANGUAGE", settings.language, quote_mode="never")
    set_key(path, f"{PREFIX}SHOW_GRID", "true" if settings.show_grid else "false", quote_mode="never")
    set_key(path, f"{PREFIX}GRID_SIZE", f"{settings.grid_size:g}", quote_mode="never")
    set_key(path, f"{PREFIX}THEME", settings.theme, quote_mode="never")
