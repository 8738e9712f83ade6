"""
Tests for the acquisition API: job lifecycle, single-flight, batch reads.
"""

import threading

import pytest

from conftest import ScriptedSource, make_page
from api.server import create_app
from sources.base import SourceError


def _make_client(config, source):
    app = create_app(config, source)
    app.config["TESTING"] = True
    return app, app.test_client()


def _wait(app, source_id: str):
    job = app.extensions["acquisition_jobs"][source_id]
    job.thread.join(timeout=5)
    assert not job.thread.is_alive()


class TestAcquisitionAPI:
    def test_start_and_complete(self, config):
        source = ScriptedSource([make_page(0, 100, "c1"), make_page(100, 100, "")])
        app, client = _make_client(config, source)

        resp = client.post("/api/acquisitions/570", json={"target_count": 200, "display_name": "Dota 2"})
        assert resp.status_code == 202
        assert resp.get_json()["total"] == 200

        _wait(app, "570")
        data = client.get("/api/acquisitions/570").get_json()
        assert data["status"] == "completed"
        assert data["progress"] == 200
        assert data["progress_percent"] == 100
        assert data["stop_reason"] == "target_reached"
        assert data["batch_id"] is not None

        batch = client.get(f"/api/batches/{data['batch_id']}").get_json()
        assert batch["display_name"] == "Dota 2"
        assert batch["item_count"] == 200
        assert len(batch["reviews"]) == 200
        assert batch["reviews"][0]["item_id"] == "r0"

    def test_partial_is_saved_and_marked(self, config):
        source = ScriptedSource([make_page(0, 120, "")])
        app, client = _make_client(config, source)

        client.post("/api/acquisitions/570", json={"target_count": 300})
        _wait(app, "570")

        data = client.get("/api/acquisitions/570").get_json()
        assert data["status"] == "partial"
        assert data["stop_reason"] == "exhausted"

        history = client.get("/api/history/570").get_json()
        assert len(history["batches"]) == 1
        assert history["batches"][0]["status"] == "partial"
        assert history["batches"][0]["item_count"] == 120

    def test_default_target(self, config):
        source = ScriptedSource([make_page(0, 100, "c1"), make_page(100, 100, "")])
        app, client = _make_client(config, source)

        resp = client.post("/api/acquisitions/570")
        assert resp.get_json()["total"] == config.default_target
        _wait(app, "570")

    def test_source_failure_reports_error(self, config):
        source = ScriptedSource([SourceError("down")] * 3)
        app, client = _make_client(config, source)

        client.post("/api/acquisitions/570", json={"target_count": 100})
        _wait(app, "570")

        data = client.get("/api/acquisitions/570").get_json()
        assert data["status"] == "error"
        assert "3 consecutive errors" in data["error"]
        assert data["batch_id"] is None
        assert client.get("/api/history/570").get_json()["batches"] == []

    def test_insufficient_data_reports_error(self, config):
        source = ScriptedSource([make_page(0, 40, "")])
        app, client = _make_client(config, source)

        client.post("/api/acquisitions/570", json={"target_count": 100})
        _wait(app, "570")

        data = client.get("/api/acquisitions/570").get_json()
        assert data["status"] == "error"
        assert "Only 40 reviews" in data["error"]

    def test_second_start_conflicts_while_running(self, config):
        gate = threading.Event()
        source = ScriptedSource([make_page(0, 100, "")], gate=gate)
        app, client = _make_client(config, source)

        assert client.post("/api/acquisitions/570", json={"target_count": 100}).status_code == 202
        assert client.post("/api/acquisitions/570", json={"target_count": 100}).status_code == 409

        gate.set()
        _wait(app, "570")

        # Free again once finished
        assert client.post("/api/acquisitions/570", json={"target_count": 100}).status_code == 202
        _wait(app, "570")

    def test_cancel(self, config):
        gate = threading.Event()
        source = ScriptedSource([make_page(0, 100, "c1"), make_page(100, 100, "")], gate=gate)
        app, client = _make_client(config, source)

        client.post("/api/acquisitions/570", json={"target_count": 200})
        assert source.entered.wait(5)
        assert client.delete("/api/acquisitions/570").status_code == 200
        gate.set()
        _wait(app, "570")

        data = client.get("/api/acquisitions/570").get_json()
        assert data["status"] == "cancelled"
        assert data["progress"] == 100
        assert data["batch_id"] is None
        assert len(source.calls) == 1

    @pytest.mark.parametrize("target", ["lots", 50, True, 150.7])
    def test_invalid_target(self, config, target):
        _, client = _make_client(config, ScriptedSource([]))
        resp = client.post("/api/acquisitions/570", json={"target_count": target})
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_whole_number_float_target_accepted(self, config):
        source = ScriptedSource([make_page(0, 100, "")])
        app, client = _make_client(config, source)

        resp = client.post("/api/acquisitions/570", json={"target_count": 100.0})
        assert resp.status_code == 202
        assert resp.get_json()["total"] == 100
        _wait(app, "570")

    @pytest.mark.parametrize("body", [[1, 2], "570", 7])
    def test_non_object_body_rejected(self, config, body):
        app, client = _make_client(config, ScriptedSource([]))
        resp = client.post("/api/acquisitions/570", json=body)
        assert resp.status_code == 400
        assert "JSON object" in resp.get_json()["error"]
        assert "570" not in app.extensions["acquisition_jobs"]

    def test_unknown_job(self, config):
        _, client = _make_client(config, ScriptedSource([]))
        assert client.get("/api/acquisitions/999").status_code == 404
        assert client.delete("/api/acquisitions/999").status_code == 404


class TestBatchAPI:
    def test_batch_not_found(self, config):
        _, client = _make_client(config, ScriptedSource([]))
        assert client.get("/api/batches/12345").status_code == 404

    def test_stats(self, config):
        source = ScriptedSource([make_page(0, 100, "")])
        app, client = _make_client(config, source)

        client.post("/api/acquisitions/570", json={"target_count": 100})
        _wait(app, "570")

        stats = client.get("/api/stats").get_json()
        assert stats["total_batches"] == 1
        assert stats["total_reviews"] == 100

    def test_index(self, config):
        _, client = _make_client(config, ScriptedSource([]))
        data = client.get("/").get_json()
        assert "/api/stats" in data["endpoints"]
