"""
Ordered frames, the exclusion set and the playback cursor.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from spritesheet_editor.config import DEFAULT_FPS, MAX_FPS, MIN_FPS
from spritesheet_editor.errors import InvalidDimensions
from spritesheet_editor.raster import ensure_rgba

Snapshot = tuple[np.ndarray, ...]


class FrameTimeline:
    """
    Frames of one animation plus curation and playback state.

    Excluded frames stay in the sequence; they are only skipped by playback
    and export.
    """

    def __init__(self, frames: Sequence[np.ndarray] = (), fps: int = DEFAULT_FPS, playing: bool = True):
        self.frames: list[np.ndarray] = []
        self.excluded: set[int] = set()
        self.current_index = 0
        self.playing = playing
        self.fps = fps
        self.replace_frames(frames)

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def frame_size(self) -> tuple[int, int] | None:
        """(width, height) shared by all frames, or None when empty."""
        if not self.frames:
            return None
        return self.frames[0].shape[1], self.frames[0].shape[0]

    @property
    def current_frame(self) -> np.ndarray | None:
        return self.frames[self.current_index] if self.frames else None

    def replace_frames(self, frames: Sequence[np.ndarray], excluded: Iterable[int] = ()) -> None:
        """Swap in a whole new frame list. Resets the cursor."""
        frames = [ensure_rgba(f) for f in frames]
        if frames:
            size = frames[0].shape[:2]
            for i, f in enumerate(frames):
                if f.shape[:2] != size:
                    raise InvalidDimensions(
                        f"frame {i} is {f.shape[1]}x{f.shape[0]}, expected {size[1]}x{size[0]}")
        self.frames = frames
        self.excluded = set()
        self.current_index = 0
        for index in excluded:
            self.check_index(index)
            self.excluded.add(index)
        if self.current_index in self.excluded:
            self.advance()

    def set_frame(self, index: int, buffer: np.ndarray) -> None:
        self.check_index(index)
        if ensure_rgba(buffer).shape != self.frames[index].shape:
            raise InvalidDimensions(f"frame {index} must keep shape {self.frames[index].shape}")
        self.frames[index] = buffer

    def snapshot(self) -> Snapshot:
        """Deep copy of the frame sequence, for the history."""
        return tuple(f.copy() for f in self.frames)

    def restore(self, snapshot: Snapshot) -> None:
        """Put back a snapshot taken from this timeline. Exclusions and cursor are kept when valid."""
        self.frames = [f.copy() for f in snapshot]
        self.excluded = {i for i in self.excluded if i < len(self.frames)}
        if self.current_index >= len(self.frames):
            self.current_index = 0

    def check_index(self, index: int) -> None:
        if not 0 <= index < len(self.frames):
            raise IndexError(f"frame index {index} out of range [0, {len(self.frames)})")

    def eligible_indices(self) -> list[int]:
        return [i for i in range(len(self.frames)) if i not in self.excluded]

    def active_frames(self) -> list[np.ndarray]:
        """Non-excluded frames in order."""
        return [f for i, f in enumerate(self.frames) if i not in self.excluded]

    def seek(self, index: int) -> None:
        self.check_index(index)
        self.current_index = index

    def advance(self) -> int:
        """
        Move to the next non-excluded frame, wrapping around.

        No-op when there are no frames or every frame is excluded.

        Returns:
            The (possibly unchanged) current index
        """
        count = len(self.frames)
        if count == 0 or len(self.excluded) >= count:
            return self.current_index

        nxt = (self.current_index + 1) % count
        steps = 0
        while nxt in self.excluded and steps < count:
            nxt = (nxt + 1) % count
            steps += 1
        self.current_index = nxt
        return nxt

    def toggle_exclusion(self, index: int) -> bool:
        """
        Flip an index's exclusion. Excluding the displayed frame moves the cursor on.

        Returns:
            True if the index is now excluded
        """
        self.check_index(index)
        if index in self.excluded:
            self.excluded.discard(index)
            return False

        self.excluded.add(index)
        if index == self.current_index:
            self.advance()
        return True

    def is_playback_active(self) -> bool:
        """Playback ticks only while playing, at a sane fps, with two or more eligible frames."""
        if not self.playing or not MIN_FPS <= self.fps <= MAX_FPS:
            return False
        return len(self.frames) - len(self.excluded) >= 2

    def frame_interval_ms(self) -> float:
        if not MIN_FPS <= self.fps <= MAX_FPS:
            raise ValueError(f"fps must be in [{MIN_FPS}, {MAX_FPS}], got {self.fps}")
        return 1000.0 / self.fps
