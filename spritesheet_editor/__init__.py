"""
Spritesheet Editor

Slices grid-packed sprite animations into frames, lets them be pixel-edited and
curated, and exports the cleaned animation again.

Public API:
    - slice_spritesheet / reconstruct_spritesheet: Spritesheet codec
    - FrameTimeline, HistoryManager, PixelCanvasEngine, RegionSelector: Editing model
    - remove_background, quantize_frames: Batch frame tools
    - PersistentCache: Per-job storage
    - export_spritesheet / export_animated_sequence: Export pipeline
    - EditorSession: Everything above wired to one job on an asyncio loop
"""

from spritesheet_editor.background import remove_background
from spritesheet_editor.cache import CacheRecord, MemoryStore, PersistentCache, SqliteStore
from spritesheet_editor.canvas import PixelCanvasEngine, Tool
from spritesheet_editor.codec import frame_count_for_length, reconstruct_spritesheet, slice_spritesheet
from spritesheet_editor.errors import (
    DecodeFailure,
    EmptyAnimation,
    InvalidDimensions,
    SpritesheetEditorError,
    StaleResult,
    StorageUnavailable,
)
from spritesheet_editor.export import export_animated_sequence, export_spritesheet
from spritesheet_editor.history import HistoryManager
from spritesheet_editor.quantize import quantize_frames
from spritesheet_editor.selection import RegionSelector, Selection, SelectionMode, flood_fill
from spritesheet_editor.session import EditorSession
from spritesheet_editor.timeline import FrameTimeline

__version__ = "0.1.0"
__all__ = [
    "CacheRecord", "DecodeFailure", "EditorSession", "EmptyAnimation", "FrameTimeline",
    "HistoryManager", "InvalidDimensions", "MemoryStore", "PersistentCache", "PixelCanvasEngine",
    "RegionSelector", "Selection", "SelectionMode", "SpritesheetEditorError", "SqliteStore",
    "StaleResult", "StorageUnavailable", "Tool", "export_animated_sequence", "export_spritesheet",
    "flood_fill", "frame_count_for_length", "quantize_frames", "reconstruct_spritesheet",
    "remove_background", "slice_spritesheet", "__version__",
]
