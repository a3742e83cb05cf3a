"""
Pixel editing on the active frame.

Edits go to a scratch copy of the active frame. commit() writes the scratch
back into the timeline and records one history entry, so callers should commit
once per gesture (pointer down to pointer up), not once per paint call.
"""

from __future__ import annotations

from enum import Enum

import numpy as np

from spritesheet_editor.history import HistoryManager
from spritesheet_editor.logging_config import get_logger
from spritesheet_editor.raster import Color, RasterSurface, _check_color
from spritesheet_editor.selection import Selection
from spritesheet_editor.timeline import FrameTimeline, Snapshot

log = get_logger(__name__)


class Tool(str, Enum):
    BRUSH = "brush"
    ERASER = "eraser"
    WAND = "wand"


class PixelCanvasEngine:
    def __init__(self, timeline: FrameTimeline, history: HistoryManager[Snapshot]):
        self.timeline = timeline
        self.history = history
        self.active_index = 0
        self._scratch: RasterSurface | None = None

    @property
    def has_pending(self) -> bool:
        return self._scratch is not None

    def _surface(self) -> RasterSurface:
        if self._scratch is None:
            if not self.timeline.frames:
                raise IndexError("timeline has no frames to edit")
            self._scratch = RasterSurface(self.timeline.frames[self.active_index].copy())
        return self._scratch

    def activate(self, index: int) -> None:
        """Switch the edited frame. Pending edits on the previous frame are committed."""
        self.timeline.check_index(index)
        if index != self.active_index:
            self.commit()
            self.active_index = index

    def paint_region(
        self,
        center: tuple[int, int],
        tool: Tool | str,
        size: int,
        color: Color | None = None,
    ) -> None:
        """
        Apply a square brush stamp centred on center.

        Args:
            center: Pixel (x, y) under the pointer
            tool: BRUSH fills with color, ERASER clears alpha
            size: Edge length of the square; values below 1 do nothing
            color: RGBA fill colour, required for BRUSH
        """
        tool = Tool(tool)
        if size < 1:
            return
        offset = (size - 1) // 2
        x, y = center[0] - offset, center[1] - offset

        surface = self._surface()
        if tool is Tool.BRUSH:
            if color is None:
                raise ValueError("brush needs a color")
            surface.fill_rect(x, y, size, size, color)
        elif tool is Tool.ERASER:
            surface.clear_alpha_rect(x, y, size, size)
        else:
            raise ValueError(f"{tool.value} is not a painting tool")

    def fill_selection(self, selection: Selection, tool: Tool | str, color: Color | None = None) -> None:
        """Paint or erase every selected pixel of the active frame."""
        tool = Tool(tool)
        if not selection:
            return
        surface = self._surface()
        if (selection.width, selection.height) != (surface.width, surface.height):
            raise ValueError("selection does not match the active frame size")

        if tool is Tool.BRUSH:
            if color is None:
                raise ValueError("brush needs a color")
            surface.buffer[selection.mask] = _check_color(color)
        elif tool is Tool.ERASER:
            surface.buffer[selection.mask, 3] = 0
        else:
            raise ValueError(f"{tool.value} is not a painting tool")

    def read_pixel(self, x: int, y: int) -> Color:
        """Read a pixel of the active frame, pending edits included."""
        if self._scratch is not None:
            return self._scratch.get_pixel(x, y)
        return RasterSurface(self.timeline.frames[self.active_index]).get_pixel(x, y)

    def current_buffer(self) -> np.ndarray:
        """The active frame as currently displayed (read-only use)."""
        if self._scratch is not None:
            return self._scratch.buffer
        return self.timeline.frames[self.active_index]

    def commit(self) -> bool:
        """
        Write pending edits into the timeline as one undoable action.

        Returns:
            True if there was anything to commit and it changed the frame
        """
        if self._scratch is None:
            return False
        scratch, self._scratch = self._scratch, None

        if np.array_equal(scratch.buffer, self.timeline.frames[self.active_index]):
            return False

        self.history.record(self.timeline.snapshot())
        self.timeline.set_frame(self.active_index, scratch.buffer)
        log.debug("Committed edit on frame %d", self.active_index)
        return True

    def discard(self) -> None:
        self._scratch = None
