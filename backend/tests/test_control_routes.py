"""
Tests for the /queue control endpoints.

QC: Verify that the HTTP surface:
1. Loads presets and exposes the selection
2. Submits single files and batches with resolved output paths
3. Maps orchestration errors to 404 / 400 / 409 / 502
4. Persists settings and exposes naming helpers
"""

import json

import pytest
from fastapi.testclient import TestClient

from clipqueue.config import RuntimeConfig
from clipqueue.encoder.errors import EncoderError
from clipqueue.encoder.local import LocalEncoder
from clipqueue.main import create_app
from clipqueue.persistence.store import JsonStateStore


class RejectingEncoder(LocalEncoder):
    """Local encoder that refuses one input path."""

    def __init__(self, reject, **kwargs):
        super().__init__(**kwargs)
        self.reject = reject

    async def add_job(self, input_path, output_path, preset):
        if input_path == self.reject:
            raise EncoderError(f"cannot read {input_path}")
        return await super().add_job(input_path, output_path, preset)


@pytest.fixture
def config(tmp_path):
    return RuntimeConfig(data_dir=tmp_path)


@pytest.fixture
def test_client(config):
    with TestClient(create_app(config)) as client:
        yield client


def configure_out(client, pattern="{name}_{number}"):
    response = client.put("/queue/settings", json={
        "output_directory": "/out",
        "use_subdirectory": False,
        "file_name_pattern": pattern,
    })
    assert response.status_code == 200
    return response


class TestPresets:

    def test_presets_loaded_at_startup(self, test_client):
        response = test_client.get("/queue/presets")

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["presets"]] == ["High", "Balanced", "Web", "Mobile"]
        assert data["selected"] == "Balanced"

    def test_select_preset(self, test_client):
        response = test_client.post("/queue/presets/select", json={"name": "Web"})

        assert response.status_code == 200
        assert test_client.get("/queue/presets").json()["selected"] == "Web"

    def test_select_unknown_preset(self, test_client):
        response = test_client.post("/queue/presets/select", json={"name": "Ultra"})
        assert response.status_code == 404

    def test_no_presets_blocks_submission(self, config):
        encoder = LocalEncoder(presets=[])
        with TestClient(create_app(config, encoder=encoder)) as client:
            assert client.get("/queue/presets").status_code == 409
            response = client.post("/queue/jobs", json={"input_path": "/media/clip.webm"})

        assert response.status_code == 409


class TestJobs:

    def test_add_job(self, test_client):
        response = test_client.post("/queue/jobs", json={"input_path": "/media/clip.webm"})

        assert response.status_code == 200
        data = response.json()
        assert data["duplicate"] is False

        jobs = test_client.get("/queue/jobs").json()["jobs"]
        assert len(jobs) == 1
        assert jobs[0]["id"] == data["job_id"]
        assert jobs[0]["output_path"] == "/media/converted/clip_converted.mp4"
        assert jobs[0]["status"] == "queued"
        assert jobs[0]["preset"]["name"] == "Balanced"

    def test_duplicate_submission(self, test_client):
        test_client.post("/queue/jobs", json={"input_path": "/media/clip.webm"})
        response = test_client.post("/queue/jobs", json={"input_path": "/media/clip.webm"})

        assert response.json() == {"job_id": None, "duplicate": True}
        assert len(test_client.get("/queue/jobs").json()["jobs"]) == 1

    def test_empty_input_path_rejected(self, test_client):
        response = test_client.post("/queue/jobs", json={"input_path": ""})
        assert response.status_code == 422

    def test_batch(self, test_client):
        configure_out(test_client)

        response = test_client.post("/queue/jobs/batch", json={
            "input_paths": ["/in/a.webm", "/in/b.webm", "/in/c.webm"],
        })

        assert response.status_code == 200
        assert len(response.json()["job_ids"]) == 3
        outputs = [job["output_path"] for job in test_client.get("/queue/jobs").json()["jobs"]]
        assert outputs == ["/out/a_0.mp4", "/out/b_1.mp4", "/out/c_2.mp4"]

    def test_encoder_rejection(self, config):
        encoder = RejectingEncoder("/media/bad.webm")
        with TestClient(create_app(config, encoder=encoder)) as client:
            response = client.post("/queue/jobs", json={"input_path": "/media/bad.webm"})

        assert response.status_code == 502

    def test_batch_rejection_reports_submitted_jobs(self, config):
        encoder = RejectingEncoder("/in/b.webm")
        with TestClient(create_app(config, encoder=encoder)) as client:
            response = client.post("/queue/jobs/batch", json={
                "input_paths": ["/in/a.webm", "/in/b.webm", "/in/c.webm"],
            })
            jobs = client.get("/queue/jobs").json()["jobs"]

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["submitted_job_ids"] == [jobs[0]["id"]]
        assert [job["input_path"] for job in jobs] == ["/in/a.webm"]

    def test_cancel_job(self, test_client):
        job_id = test_client.post(
            "/queue/jobs", json={"input_path": "/media/clip.webm"}
        ).json()["job_id"]

        response = test_client.post(f"/queue/jobs/{job_id}/cancel")

        assert response.status_code == 200
        jobs = test_client.get("/queue/jobs").json()["jobs"]
        assert jobs[0]["status"] == "cancelled"

        again = test_client.post(f"/queue/jobs/{job_id}/cancel")
        assert again.status_code == 400

    def test_cancel_unknown_job(self, test_client):
        response = test_client.post("/queue/jobs/missing/cancel")
        assert response.status_code == 404

    def test_clear_completed(self, test_client):
        job_id = test_client.post(
            "/queue/jobs", json={"input_path": "/media/a.webm"}
        ).json()["job_id"]
        test_client.post("/queue/jobs", json={"input_path": "/media/b.webm"})
        test_client.post(f"/queue/jobs/{job_id}/cancel")

        response = test_client.post("/queue/jobs/clear-completed")

        assert response.status_code == 200
        jobs = test_client.get("/queue/jobs").json()["jobs"]
        assert [job["input_path"] for job in jobs] == ["/media/b.webm"]


class TestHistory:

    def test_history_restored_and_cleared(self, config, tmp_path):
        (tmp_path / "conversion_history.json").write_text(json.dumps([{
            "id": "old-job",
            "input_path": "/media/old.webm",
            "output_path": "/media/converted/old_converted.mp4",
            "preset_name": "High",
            "completed_at": "2024-05-01T12:30:00",
            "file_size_before": 2000,
            "file_size_after": 500,
            "duration": 4.0,
        }]))

        with TestClient(create_app(config)) as client:
            entries = client.get("/queue/history").json()["entries"]
            assert [e["id"] for e in entries] == ["old-job"]

            assert client.delete("/queue/history").status_code == 200
            assert client.get("/queue/history").json()["entries"] == []

        assert JsonStateStore(tmp_path).load_history() == []

    def test_history_claims_output_paths(self, config, tmp_path):
        (tmp_path / "conversion_history.json").write_text(json.dumps([{
            "id": "old-job",
            "input_path": "/media/clip.webm",
            "output_path": "/media/converted/clip_converted.mp4",
            "preset_name": "High",
        }]))

        with TestClient(create_app(config)) as client:
            client.post("/queue/jobs", json={"input_path": "/media/clip.webm"})
            jobs = client.get("/queue/jobs").json()["jobs"]

        assert jobs[0]["output_path"] == "/media/converted/clip_converted-01.mp4"


class TestSettings:

    def test_get_settings(self, test_client):
        data = test_client.get("/queue/settings").json()

        assert data["settings"]["file_name_pattern"] == "{name}_converted"
        assert data["preview_path"] == "converted/example_converted.mp4"

    def test_update_settings(self, test_client):
        data = configure_out(test_client).json()

        assert data["settings"]["output_directory"] == "/out"
        assert data["preview_path"] == "/out/example_0.mp4"
        assert data["hint"] is None

    def test_invalid_pattern_replaced_with_hint(self, test_client):
        response = test_client.put("/queue/settings", json={"file_name_pattern": "bad{xyz}name"})

        data = response.json()
        assert data["settings"]["file_name_pattern"] == "{name}_converted"
        assert "{xyz}" in data["hint"]

    def test_unknown_setting_rejected(self, test_client):
        response = test_client.put("/queue/settings", json={"theme": "dark"})
        assert response.status_code == 422

    def test_settings_persisted(self, config, tmp_path):
        with TestClient(create_app(config)) as client:
            configure_out(client)

        saved = json.loads((tmp_path / "settings.json").read_text())
        assert saved["output_directory"] == "/out"
        assert saved["use_subdirectory"] is False

        with TestClient(create_app(config)) as client:
            data = client.get("/queue/settings").json()
        assert data["settings"]["output_directory"] == "/out"


class TestNaming:

    def test_validate(self, test_client):
        data = test_client.post("/queue/naming/validate", json={"pattern": "bad{xyz}name"}).json()

        assert data["valid"] is False
        assert data["effective_pattern"] == "{name}_converted"
        assert data["hint"]

    def test_suggest(self, test_client):
        data = test_client.post("/queue/naming/suggest", json={"text": "{na", "cursor": 3}).json()

        assert data == {"suggestion": "me}", "text": "{na", "cursor": 3}

    def test_suggest_accept(self, test_client):
        data = test_client.post(
            "/queue/naming/suggest", json={"text": "{na", "cursor": 3, "accept": True}
        ).json()

        assert data["text"] == "{name}"
        assert data["cursor"] == 6

    def test_preview_with_overrides(self, test_client):
        data = test_client.post("/queue/naming/preview", json={
            "output_directory": "/exports/",
            "use_subdirectory": False,
            "file_name_pattern": "{number}_{name}",
            "sample_input": "/media/holiday.webm",
        }).json()

        assert data["path"] == "/exports/0_holiday.mp4"
        assert data["hint"] is None

        current = test_client.get("/queue/settings").json()["settings"]
        assert current["output_directory"] == ""


def test_root(test_client):
    response = test_client.get("/")
    assert response.json() == {"service": "clipqueue", "status": "running"}
