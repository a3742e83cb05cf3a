"""
Tests for parsing the job collaborator's payload.
"""

import pytest

from spritesheet_editor.job import JobParams, JobSnapshot, JobStatus


def test_succeeded_job():
    job = JobSnapshot.from_payload({
        "gen_id": "abc",
        "status": "succeeded",
        "input_params": {"length": 25, "use_mid_image": True, "prompt": "a knight", "seed": 4},
        "input_images": [{"url": "https://cdn/in0.png", "key": "k0"}],
        "output_images": [{"url": "https://cdn/out.png", "key": "k1"}],
    })
    assert job.job_id == "abc"
    assert job.status is JobStatus.SUCCEEDED
    assert job.is_ready
    assert job.output_image == "https://cdn/out.png"
    assert job.preview_image == "https://cdn/in0.png"
    assert job.params.frame_count == 12
    assert job.params.use_mid_image and not job.params.use_end_image
    assert job.params.extra == {"prompt": "a knight", "seed": 4}, "unknown fields pass through"


def test_pending_job_defaults():
    job = JobSnapshot.from_payload({"gen_id": "q", "status": "queued"})
    assert job.status.is_pending
    assert not job.is_ready
    assert job.params == JobParams()
    assert job.params.frame_count == 16, "missing length defaults to 33"
    assert job.preview_image is None


def test_embedded_output_image():
    job = JobSnapshot.from_payload({
        "gen_id": "b",
        "status": "succeeded",
        "output_images": [{"url": "", "key": "k", "base64": "iVBORw0KGgo="}],
    })
    assert job.output_image == "data:image/png;base64,iVBORw0KGgo="


def test_succeeded_without_output_is_not_ready():
    job = JobSnapshot.from_payload({"gen_id": "c", "status": "succeeded", "output_images": []})
    assert not job.is_ready


def test_invalid_payloads():
    with pytest.raises(ValueError):
        JobSnapshot.from_payload({"status": "queued"})
    with pytest.raises(ValueError):
        JobSnapshot.from_payload({"gen_id": "x", "status": "exploded"})
