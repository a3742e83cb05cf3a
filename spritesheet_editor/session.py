"""
Editing session for one job at a time.

EditorSession is the explicit context the surrounding application holds: it
owns the timeline, history, canvas and selection, and runs the playback and
autosave timers on the asyncio event loop. Remote access goes through two
injected coroutines, so the core never talks to the network itself.

Every open_job call takes a fresh load token, and every fetch and timer is
tagged with the token it was issued under. If the user opened another job, or
the same job again, while a fetch was in flight, its result is dropped.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping

import numpy as np

from spritesheet_editor import export
from spritesheet_editor.background import remove_background
from spritesheet_editor.cache import PersistentCache
from spritesheet_editor.canvas import PixelCanvasEngine, Tool
from spritesheet_editor.codec import length_for_frame_count, reconstruct_spritesheet, slice_spritesheet
from spritesheet_editor.config import (
    DEFAULT_BACKGROUND_TOLERANCE,
    DEFAULT_BRUSH_SIZE,
    DEFAULT_PALETTE_SIZE,
    DEFAULT_TOLERANCE,
    MAX_FPS,
    MIN_FPS,
    EditorConfig,
)
from spritesheet_editor.errors import StaleResult
from spritesheet_editor.history import HistoryManager
from spritesheet_editor.job import JobSnapshot, JobStatus
from spritesheet_editor.logging_config import get_logger
from spritesheet_editor.preprocess import unpad_reference_image
from spritesheet_editor.quantize import quantize_frames
from spritesheet_editor.raster import Color, decode_data_url, decode_image
from spritesheet_editor.selection import RegionSelector, Selection, SelectionMode
from spritesheet_editor.timeline import FrameTimeline, Snapshot

log = get_logger(__name__)

FetchJob = Callable[[str], Awaitable[Mapping[str, Any]]]
FetchImage = Callable[[str], Awaitable[bytes]]

# How often an inert playback loop re-checks whether it should run
IDLE_POLL_S = 0.1


class EditorSession:
    def __init__(
        self,
        fetch_job: FetchJob,
        fetch_image: FetchImage,
        cache: PersistentCache | None = None,
        config: EditorConfig | None = None,
    ):
        self.fetch_job = fetch_job
        self.fetch_image = fetch_image
        self.cache = cache if cache is not None else PersistentCache()
        self.config = config or EditorConfig()

        self.timeline = FrameTimeline(fps=self.config.fps)
        self.history: HistoryManager[Snapshot] = HistoryManager(self.config.history_depth)
        self.canvas = PixelCanvasEngine(self.timeline, self.history)
        self.selector = RegionSelector()
        self.tool = Tool.BRUSH

        self.job_id: str | None = None
        self.job: JobSnapshot | None = None
        self.editable = False
        self._sliced_from: str | None = None
        self._load_token = 0
        self._tasks: list[asyncio.Task] = []

    # ------------------------------------------------------------------
    # Job lifecycle
    # ------------------------------------------------------------------

    def _ensure_current(self, job_id: str, token: int) -> None:
        if job_id != self.job_id or token != self._load_token:
            raise StaleResult(job_id, self.job_id)

    def _reset_context(self) -> None:
        self.canvas.discard()
        self.canvas.active_index = 0
        self.selector.clear()
        self.history.reset()
        self.timeline.replace_frames([])
        self.job = None
        self.editable = False
        self._sliced_from = None

    async def open_job(self, job_id: str) -> bool:
        """
        Make job_id the active job and load its frames.

        The cache is consulted first; only on a miss is the output sheet fetched
        and sliced. A pending job shows its first input image as a single
        preview frame.

        Returns:
            False if another job was selected before loading finished

        Raises:
            DecodeFailure: If a fetched image cannot be decoded.
            InvalidDimensions: If the output sheet cannot be sliced.
        """
        self._cancel_timers()
        self._load_token += 1
        token = self._load_token
        self.job_id = job_id
        self._reset_context()
        log.info("Opening job %s", job_id)

        cached = self.cache.load_frames_source(job_id)
        if cached is not None:
            sheet, record = cached
            frames = slice_spritesheet(sheet, length_for_frame_count(record.frame_count))
            self.timeline.replace_frames(frames, record.excluded_indices)
            self.editable = True
            self._sliced_from = "cache"
            log.info("Restored job %s from cache (%d frames)", job_id, len(frames))

        try:
            payload = await self.fetch_job(job_id)
            self._ensure_current(job_id, token)
            await self._apply_job(JobSnapshot.from_payload(payload), token)
        except StaleResult as e:
            log.debug("Discarded stale result: %s", e)
            return False

        self._start_timers(token)
        return True

    async def apply_job_update(self, payload: Mapping[str, Any]) -> bool:
        """
        Feed a polled job status into the session.

        Returns:
            False if the update belongs to a job that is no longer active
        """
        job = JobSnapshot.from_payload(payload)
        token = self._load_token
        try:
            self._ensure_current(job.job_id, token)
            await self._apply_job(job, token)
        except StaleResult as e:
            log.debug("Discarded stale result: %s", e)
            return False
        return True

    async def _apply_job(self, job: JobSnapshot, token: int) -> None:
        self.job = job

        if job.is_ready:
            if self._sliced_from in ("cache", job.output_image):
                self.editable = True
                return
            data = await self._load_image(job.output_image, job.job_id, token)  # type: ignore[arg-type]
            frames = slice_spritesheet(decode_image(data), job.params.length)
            self.timeline.replace_frames(frames)
            self.history.reset()
            self.canvas.discard()
            self.canvas.active_index = 0
            self.selector.clear()
            self._sliced_from = job.output_image
            self.editable = True
            log.info("Loaded %d frames for job %s", len(frames), job.job_id)

        elif job.status.is_pending:
            if self._sliced_from is None and not self.timeline.frames and job.preview_image:
                data = await self._load_image(job.preview_image, job.job_id, token)
                preview = decode_image(data)
                if job.params.use_padding:
                    preview = unpad_reference_image(preview)
                self.timeline.replace_frames([preview])
            log.debug("Job %s is %s", job.job_id, job.status.value)

        elif job.status is JobStatus.FAILED and self._sliced_from is None:
            self.editable = False
            log.warning("Job %s failed: %s", job.job_id, job.error or "no details")

    async def _load_image(self, ref: str, job_id: str, token: int) -> bytes:
        """Resolve an image reference to bytes, via the asset cache where possible."""
        if ref.startswith("data:"):
            return decode_data_url(ref)

        data = self.cache.get_asset(ref)
        if data is None:
            data = await self.fetch_image(ref)
            self._ensure_current(job_id, token)
            self.cache.put_asset(ref, data)
        return data

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _start_timers(self, token: int) -> None:
        self._cancel_timers()
        self._tasks = [
            asyncio.create_task(self._playback_loop(token), name=f"playback-{self.job_id}-{token}"),
            asyncio.create_task(self._autosave_loop(token), name=f"autosave-{self.job_id}-{token}"),
        ]

    def _cancel_timers(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []

    async def _playback_loop(self, token: int) -> None:
        while self._load_token == token:
            if not self.timeline.is_playback_active():
                await asyncio.sleep(IDLE_POLL_S)
                continue
            await asyncio.sleep(self.timeline.frame_interval_ms() / 1000)
            if self._load_token != token:
                return
            if self.timeline.is_playback_active():
                self.timeline.advance()

    async def _autosave_loop(self, token: int) -> None:
        while True:
            await asyncio.sleep(self.config.autosave_interval_s)
            if self._load_token != token:
                return
            self.save()

    async def close(self) -> None:
        """End the session: stop the timers and save a last time."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.canvas.commit()
        self.save()
        self._load_token += 1
        self.job_id = None

    # ------------------------------------------------------------------
    # Persistence and export
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Write the current frames and exclusions to the cache. Pending strokes are not included."""
        if not self.editable or self.job_id is None or not self.timeline.frames:
            return False
        sheet = reconstruct_spritesheet(self.timeline.frames)
        record = self.cache.put(self.job_id, sheet, self.timeline.excluded, len(self.timeline.frames))
        return record is not None

    def export_spritesheet(self) -> bytes:
        """PNG bytes of the active frames. Raises EmptyAnimation if all are excluded."""
        self.canvas.commit()
        return export.export_spritesheet(self.timeline.frames, self.timeline.excluded)

    def export_animation(
        self,
        background: tuple[int, int, int] | None = None,
        fmt: str = "GIF",
    ) -> bytes:
        self.canvas.commit()
        return export.export_animated_sequence(
            self.timeline.frames,
            self.timeline.excluded,
            fps=self.timeline.fps,
            background=background or self.config.export_background,
            size=self.config.export_size,
            fmt=fmt,
        )

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def change_tool(self, tool: Tool | str) -> None:
        self.canvas.commit()
        self.selector.clear()
        self.tool = Tool(tool)

    def select_frame(self, index: int) -> None:
        """Show and edit frame `index`. Playback pauses so the frame stays put."""
        self.canvas.activate(index)
        self.selector.clear()
        self.timeline.playing = False
        self.timeline.seek(index)

    def set_fps(self, fps: int) -> None:
        if not MIN_FPS <= fps <= MAX_FPS:
            raise ValueError(f"fps must be in [{MIN_FPS}, {MAX_FPS}], got {fps}")
        self.timeline.fps = fps

    def toggle_playing(self) -> bool:
        self.timeline.playing = not self.timeline.playing
        return self.timeline.playing

    def paint(self, center: tuple[int, int], size: int = DEFAULT_BRUSH_SIZE, color: Color | None = None) -> None:
        """One elementary paint call of the current stroke. Call end_stroke() on pointer up."""
        self.canvas.paint_region(center, self.tool, size, color)

    def end_stroke(self) -> bool:
        return self.canvas.commit()

    def select_region(
        self,
        origin: tuple[int, int],
        tolerance: float = DEFAULT_TOLERANCE,
        mode: SelectionMode | str = SelectionMode.REPLACE,
    ) -> Selection:
        return self.selector.select(self.canvas.current_buffer(), origin, tolerance, mode)

    def clear_selection(self) -> None:
        self.selector.clear()

    def fill_selection(self, color: Color | None = None) -> bool:
        """Paint the selection with color, or erase it when color is None. One undo step."""
        selection = self.selector.selection
        if selection is None or not selection:
            return False
        tool = Tool.ERASER if color is None else Tool.BRUSH
        self.canvas.fill_selection(selection, tool, color)
        return self.canvas.commit()

    def _apply_batch(self, frames: list[np.ndarray]) -> None:
        self.history.record(self.timeline.snapshot())
        self.timeline.restore(tuple(frames))
        self.selector.clear()

    def remove_background(self, tolerance: float = DEFAULT_BACKGROUND_TOLERANCE, despeckle: bool = False) -> None:
        """Clear the background of every frame as one undoable action."""
        self.canvas.commit()
        if not self.timeline.frames:
            return
        self._apply_batch(remove_background(self.timeline.frames, tolerance, despeckle))

    def quantize(self, k: int = DEFAULT_PALETTE_SIZE, seed: int | None = None) -> None:
        """Reduce every frame to a shared palette as one undoable action."""
        self.canvas.commit()
        if not self.timeline.frames:
            return
        self._apply_batch(quantize_frames(self.timeline.frames, k, seed=seed))

    def toggle_exclusion(self, index: int) -> bool:
        return self.timeline.toggle_exclusion(index)

    def undo(self) -> bool:
        """Revert the last action. An unfinished stroke counts as the last action."""
        if self.canvas.has_pending:
            self.canvas.discard()
            return True
        state = self.history.undo(self.timeline.snapshot())
        if state is None:
            return False
        self.timeline.restore(state)
        self.selector.clear()
        return True

    def redo(self) -> bool:
        self.canvas.discard()
        state = self.history.redo(self.timeline.snapshot())
        if state is None:
            return False
        self.timeline.restore(state)
        self.selector.clear()
        return True
