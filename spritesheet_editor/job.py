"""
The slice of the generation job payload the editor consumes.

Everything else in the payload is kept verbatim in `extra` and never interpreted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from spritesheet_editor.codec import frame_count_for_length
from spritesheet_editor.config import DEFAULT_LENGTH


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_pending(self) -> bool:
        return self in (JobStatus.QUEUED, JobStatus.RUNNING)


@dataclass(frozen=True)
class JobParams:
    length: int = DEFAULT_LENGTH
    use_padding: bool = False
    use_mid_image: bool = False
    use_end_image: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def frame_count(self) -> int:
        return frame_count_for_length(self.length)

    @classmethod
    def from_payload(cls, params: Mapping[str, Any] | None) -> JobParams:
        params = dict(params or {})
        known = {
            "length": int(params.pop("length", None) or DEFAULT_LENGTH),
            "use_padding": bool(params.pop("use_padding", False)),
            "use_mid_image": bool(params.pop("use_mid_image", False)),
            "use_end_image": bool(params.pop("use_end_image", False)),
        }
        return cls(extra=params, **known)


def _image_ref(entry: Any) -> str | None:
    """An image entry is either a bare URL or a mapping with url/base64."""
    if isinstance(entry, str):
        return entry or None
    if isinstance(entry, Mapping):
        if entry.get("base64"):
            b64 = entry["base64"]
            return b64 if b64.startswith("data:") else "data:image/png;base64," + b64
        return entry.get("url") or None
    return None


@dataclass(frozen=True)
class JobSnapshot:
    """
    One observation of a generation job.

    Attributes:
        job_id: Job id
        status: Current status
        params: Parameters the editor needs
        input_images: References (URL or data URL) to the start/mid/end inputs
        output_image: Reference to the generated sheet, once available
    """
    job_id: str
    status: JobStatus
    params: JobParams
    input_images: tuple[str, ...] = ()
    output_image: str | None = None
    error: str | None = None

    @property
    def is_ready(self) -> bool:
        """True when the output sheet can be sliced."""
        return self.status is JobStatus.SUCCEEDED and self.output_image is not None

    @property
    def preview_image(self) -> str | None:
        return self.input_images[0] if self.input_images else None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> JobSnapshot:
        """
        Build a snapshot from the job collaborator's JSON.

        Raises:
            ValueError: If the id or status is missing or unknown.
        """
        job_id = payload.get("gen_id") or payload.get("job_id")
        if not job_id:
            raise ValueError("job payload has no id")
        try:
            status = JobStatus(payload.get("status"))
        except ValueError as e:
            raise ValueError(f"job {job_id} has unknown status {payload.get('status')!r}") from e

        inputs = tuple(r for r in (_image_ref(e) for e in payload.get("input_images") or ()) if r)
        outputs = [r for r in (_image_ref(e) for e in payload.get("output_images") or ()) if r]
        return cls(
            job_id=str(job_id),
            status=status,
            params=JobParams.from_payload(payload.get("input_params")),
            input_images=inputs,
            output_image=outputs[0] if outputs else None,
            error=payload.get("error"),
        )
