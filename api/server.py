"""
API server for review acquisition.

Acquisitions run on background threads, one per source at a time.
Clients start one, poll its progress, and read saved batches back.

Run: python main.py serve
"""

import logging
import threading
from dataclasses import dataclass, field

from flask import Flask, jsonify, request

from acquisition import Acquirer, AcquisitionError, InFlightRegistry
from config.settings import Config
from models import AcquisitionStatus, ProgressSnapshot
from sources.base import ReviewSource
from storage.db import Storage

log = logging.getLogger(__name__)

JOB_STATUS = {
    AcquisitionStatus.COMPLETE: "completed",
    AcquisitionStatus.PARTIAL: "partial",
    AcquisitionStatus.CANCELLED: "cancelled",
}


@dataclass
class AcquisitionJob:
    """Live view of one background acquisition. Only the job thread writes it."""
    source_id: str
    target_count: int
    display_name: str
    status: str = "processing"
    progress: ProgressSnapshot = field(default_factory=lambda: ProgressSnapshot(0, 0))
    stop_reason: str | None = None
    error: str | None = None
    batch_id: int | None = None
    cancel: threading.Event = field(default_factory=threading.Event, repr=False)
    thread: threading.Thread | None = field(default=None, repr=False)

    def on_progress(self, accepted: int, percent: int):
        self.progress = ProgressSnapshot(accepted, percent)

    def to_dict(self) -> dict:
        return {
            "source_id": self.source_id,
            "display_name": self.display_name,
            "status": self.status,
            "progress": self.progress.accepted,
            "total": self.target_count,
            "progress_percent": self.progress.percent,
            "stop_reason": self.stop_reason,
            "error": self.error,
            "batch_id": self.batch_id,
        }


def _parse_int(value, default: int, name: str) -> tuple[int, str | None]:
    """Parse an integer param. Returns (value, error_message)."""
    if value is None:
        return default, None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        return default, f"Invalid value for '{name}': expected integer, got '{value}'"
    try:
        return int(value), None
    except (ValueError, TypeError):
        return default, f"Invalid value for '{name}': expected integer, got '{value}'"


def create_app(config: Config, source: ReviewSource):
    app = Flask(__name__)

    acquirer = Acquirer(source, config)
    in_flight = InFlightRegistry()
    jobs: dict[str, AcquisitionJob] = {}
    app.extensions["acquisition_jobs"] = jobs

    # ── CORS for development ──
    @app.after_request
    def add_cors(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
        return response

    def open_storage() -> Storage:
        return Storage(config.db_path)

    def run_job(job: AcquisitionJob):
        try:
            result = acquirer.acquire(
                job.source_id,
                job.target_count,
                on_progress=job.on_progress,
                cancel=job.cancel,
            )
            job.stop_reason = result.stop_reason.value
            if result.status is not AcquisitionStatus.CANCELLED:
                storage = open_storage()
                try:
                    job.batch_id = storage.save_batch(
                        job.source_id,
                        job.display_name,
                        result.items,
                        target_count=job.target_count,
                        status=result.status.value,
                    )
                finally:
                    storage.close()
            job.status = JOB_STATUS[result.status]
        except AcquisitionError as e:
            log.error(f"Acquisition for {job.source_id} failed: {e}")
            job.error = str(e)
            job.status = "error"
        except Exception as e:
            log.exception(f"Acquisition for {job.source_id} crashed")
            job.error = f"Unexpected error: {e}"
            job.status = "error"
        finally:
            in_flight.release(job.source_id)

    # ── Acquisition Routes ──

    @app.route("/api/acquisitions/<source_id>", methods=["POST"])
    def start_acquisition(source_id):
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        target_count, err = _parse_int(body.get("target_count"), config.default_target, "target_count")
        if err:
            return jsonify({"error": err}), 400
        if target_count < config.min_batch_size:
            return jsonify({
                "error": f"target_count must be at least {config.min_batch_size}",
            }), 400

        if not in_flight.claim(source_id):
            return jsonify({"error": f"Acquisition already running for {source_id}"}), 409

        job = AcquisitionJob(
            source_id=source_id,
            target_count=target_count,
            display_name=body.get("display_name") or source_id,
        )
        jobs[source_id] = job
        job.thread = threading.Thread(
            target=run_job, args=(job,), name=f"acquire-{source_id}", daemon=True,
        )
        job.thread.start()
        log.info(f"Started acquisition for {source_id} (target={target_count})")
        return jsonify(job.to_dict()), 202

    @app.route("/api/acquisitions/<source_id>", methods=["GET"])
    def acquisition_status(source_id):
        job = jobs.get(source_id)
        if not job:
            return jsonify({"error": "No acquisition for this source"}), 404
        return jsonify(job.to_dict())

    @app.route("/api/acquisitions/<source_id>", methods=["DELETE"])
    def cancel_acquisition(source_id):
        job = jobs.get(source_id)
        if not job:
            return jsonify({"error": "No acquisition for this source"}), 404
        if job.status == "processing":
            job.cancel.set()
        return jsonify(job.to_dict())

    # ── Batch Routes ──

    @app.route("/api/history/<source_id>")
    def batch_history(source_id):
        storage = open_storage()
        try:
            batches = storage.get_batch_history(source_id)
            return jsonify({
                "source_id": source_id,
                "batches": [b.to_dict() for b in batches],
            })
        finally:
            storage.close()

    @app.route("/api/batches/<int:batch_id>")
    def get_batch(batch_id):
        storage = open_storage()
        try:
            batch = storage.get_batch(batch_id)
            if not batch:
                return jsonify({"error": "Batch not found"}), 404

            data = batch.to_dict()
            data["reviews"] = [r.to_dict() for r in storage.get_batch_reviews(batch_id)]
            return jsonify(data)
        finally:
            storage.close()

    @app.route("/api/stats")
    def get_stats():
        storage = open_storage()
        try:
            return jsonify(storage.get_stats())
        finally:
            storage.close()

    @app.route("/")
    def index():
        return jsonify({
            "message": "review-harvest API",
            "endpoints": [
                "/api/acquisitions/<source_id>",
                "/api/history/<source_id>",
                "/api/batches/<id>",
                "/api/stats",
            ],
        })

    return app
