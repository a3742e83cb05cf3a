"""
Editor configuration.

Module level constants hold the defaults used by the library and the CLI.
EditorConfig bundles the ones a session may override.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

APP_NAME = "spritesheet-editor"

# Spritesheet layout produced by the generation service
GRID_COLUMNS = 4
DEFAULT_LENGTH = 33     # logical length when a job omits it -> 16 frames

# Undo / redo
HISTORY_DEPTH = 32

# Playback
DEFAULT_FPS = 12
MIN_FPS = 1
MAX_FPS = 60

# Autosave
AUTOSAVE_INTERVAL_S = 30.0

# Tools
DEFAULT_BRUSH_SIZE = 1
DEFAULT_TOLERANCE = 30.0
DEFAULT_BACKGROUND_TOLERANCE = 40.0
DEFAULT_PALETTE_SIZE = 16

# Export
EXPORT_SIZE = (512, 512)
EXPORT_BACKGROUND = (0, 0, 0)

# Reference image preparation
REFERENCE_SIZE = 512
REFERENCE_PADDED_SIZE = 768
REFERENCE_PADDED_CONTENT = 384
REFERENCE_FALLBACK_BACKGROUND = (0, 60, 60)

DEFAULT_CACHE_FILE = Path.home() / ".cache" / APP_NAME / "cache.sqlite3"


@dataclass
class EditorConfig:
    """Per-session settings. Defaults come from the module constants."""
    fps: int = DEFAULT_FPS
    history_depth: int = HISTORY_DEPTH
    autosave_interval_s: float = AUTOSAVE_INTERVAL_S
    default_length: int = DEFAULT_LENGTH
    export_size: tuple[int, int] = EXPORT_SIZE
    export_background: tuple[int, int, int] = EXPORT_BACKGROUND

    def __post_init__(self) -> None:
        if self.history_depth < 1:
            raise ValueError(f"history_depth must be positive, got {self.history_depth}")
        if self.autosave_interval_s <= 0:
            raise ValueError(f"autosave_interval_s must be positive, got {self.autosave_interval_s}")
