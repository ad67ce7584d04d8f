# server.py
import io
import os
import re
import uuid
import logging
import threading
from pathlib import Path
from typing import Optional

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS

from application.dto.processing_dto import EffectParameters
from application.ports.audio_engine_port import IAudioEngine
from infrastructure.audio.ffmpeg_engine import FfmpegEngine
from infrastructure.web.job_store import get_job, set_job, update_job, delete_job, new_job_record
from remixer.core import ProcessingOrchestrator
from remixer.errors import ProcessingError
from remixer.presets import get_preset, list_presets
from remixer.utils import (
    DEFAULT_PARAMS,
    GENERIC_ERROR_MESSAGE,
    PITCH_RANGE,
    REVERB_RANGE,
    TEMPO_RANGE,
    round_half_up,
)

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger("remixer.server")

# ── Flask app ────────────────────────────────────────────────────────
app = Flask(__name__)

MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024  # 100 MB
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES

ALLOWED_ORIGINS: list[str] = ["http://localhost:5000", "http://127.0.0.1:5000"]
CORS(app, resources={
    r"/process":    {"origins": ALLOWED_ORIGINS},
    r"/status/*":   {"origins": ALLOWED_ORIGINS},
    r"/download/*": {"origins": ALLOWED_ORIGINS},
    r"/presets":    {"origins": ALLOWED_ORIGINS},
})

app.config["SECRET_KEY"] = os.environ.get("FLASK_SECRET_KEY") or os.urandom(32)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


FFMPEG_TIMEOUT_SECONDS: float = _env_float("FFMPEG_TIMEOUT_SECONDS", 600.0)
RESULT_TTL_SECONDS: float = _env_float("RESULT_TTL_SECONDS", 1800.0)

# ── API Blueprint Registration ─────────────────────────────────────────
from adapters.web.api_v1_blueprint import api_v1
app.register_blueprint(api_v1)

import adapters.web.openapi_spec as openapi_spec
@app.route("/api/v1/openapi.json")
def get_openapi_spec():
    return jsonify(openapi_spec.OPENAPI_SPEC)

# ════════════════════════════════════════════════════════════════════
# Engine: created lazily and shared, one job at a time
# ════════════════════════════════════════════════════════════════════

_engine: Optional[IAudioEngine] = None
_engine_init_lock = threading.Lock()
_engine_lock = threading.Lock()


def get_engine() -> IAudioEngine:
    """Return the shared engine, creating it on first use."""
    global _engine
    with _engine_init_lock:
        if _engine is None:
            _engine = FfmpegEngine(timeout=FFMPEG_TIMEOUT_SECONDS)
            logger.info("engine ready binary=%s workdir=%s", _engine.binary, _engine.workdir)
        return _engine


# ════════════════════════════════════════════════════════════════════
# Security helpers
# ════════════════════════════════════════════════════════════════════

AUDIO_MAGIC_BYTES: dict[bytes, str] = {
    b"\xff\xfb":              ".mp3",  # MP3 (MPEG layer 3)
    b"\xff\xf3":              ".mp3",
    b"\xff\xf2":              ".mp3",
    b"ID3":                   ".mp3",  # MP3 with ID3 tag
    b"\xff\xf1":              ".aac",  # AAC ADTS
    b"\xff\xf9":              ".aac",
    b"RIFF":                  ".wav",
    b"fLaC":                  ".flac",
    b"OggS":                  ".ogg",
    b"\x00\x00\x00\x20ftyp": ".m4a",
    b"\x00\x00\x00\x1cftyp": ".m4a",
}


def _validate_magic_bytes(file_bytes: bytes) -> bool:
    """Return True only if the file starts with a known audio signature."""
    return any(file_bytes.startswith(magic) for magic in AUDIO_MAGIC_BYTES)


def _sanitize_filename(name: str) -> str:
    """Strip path components, control chars, and limit length."""
    name = Path(name).name                        # strip directory traversal
    name = re.sub(r"[^\w\s\-.]", "", name)        # only safe chars
    name = re.sub(r"\.{2,}", ".", name)            # no double-extension tricks
    return name[:128].strip()


def _is_valid_job_id(job_id: str) -> bool:
    """Return True only for valid UUID4 strings."""
    try:
        val = uuid.UUID(job_id, version=4)
        return str(val) == job_id
    except ValueError:
        return False


def _safe_float(value, default: float, min_v: float, max_v: float) -> float:
    """Parse float from form input, clamp to valid range, never raise."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if v != v:  # NaN
        return default
    return max(min_v, min(max_v, v))


def _safe_int(value, default: int, min_v: int, max_v: int) -> int:
    """Like _safe_float, rounded to the nearest whole number."""
    v = _safe_float(value, float(default), float(min_v), float(max_v))
    return int(round_half_up(v))


def _params_from_form(form) -> EffectParameters:
    """Build effect parameters from a preset id or the individual fields."""
    preset_id = (form.get("preset") or "").strip()
    if preset_id:
        return get_preset(preset_id).params  # KeyError for unknown ids

    return EffectParameters(
        tempo=_safe_float(form.get("tempo"), DEFAULT_PARAMS["tempo"], *TEMPO_RANGE),
        pitch_semitones=_safe_int(form.get("pitch"), DEFAULT_PARAMS["pitch"], *PITCH_RANGE),
        reverb_percent=_safe_int(form.get("reverb"), DEFAULT_PARAMS["reverb"], *REVERB_RANGE),
    )


# ════════════════════════════════════════════════════════════════════
# Job runner
# ════════════════════════════════════════════════════════════════════


def _run_processing(job_id: str, input_bytes: bytes, file_name: str, params: EffectParameters) -> None:
    """Background thread target: run the orchestrator and update job state."""

    def on_progress(percent: int, status: str) -> None:
        update_job(job_id, {"progress": percent, "step": status})

    try:
        update_job(job_id, {"status": "processing"})
        with _engine_lock:
            orchestrator = ProcessingOrchestrator(get_engine())
            artifact = orchestrator.run(input_bytes, file_name, params, on_progress)
        update_job(job_id, {
            "status":   "done",
            "progress": 100,
            "artifact": artifact,
        })
        logger.info("job=%s completed size=%dB", job_id[:8], artifact.size_bytes)
    except ProcessingError as e:
        update_job(job_id, {"status": "error", "error": str(e)})
        logger.error("job=%s failed", job_id[:8])
    except Exception as e:
        update_job(job_id, {"status": "error", "error": GENERIC_ERROR_MESSAGE})
        logger.error("job=%s could not start: %s", job_id[:8], e, exc_info=True)
    finally:
        _schedule_job_expiry(job_id, delay_s=RESULT_TTL_SECONDS)


def _schedule_job_expiry(job_id: str, delay_s: float = 1800) -> None:
    """Drop the job (and its in-memory result) after *delay_s* seconds."""
    timer = threading.Timer(delay_s, delete_job, args=[job_id])
    timer.daemon = True
    timer.start()


# ════════════════════════════════════════════════════════════════════
# Routes
# ════════════════════════════════════════════════════════════════════

@app.route("/process", methods=["POST"])
def start_processing():
    """
    POST /process
    Form fields:
      - file    : audio file (multipart)
      - tempo   : float, 0.5–2.0
      - pitch   : int semitones, -12–12
      - reverb  : int percent, 0–100
      - preset  : optional preset id (overrides the three fields above)
    Returns: { jobId: str }
    """
    if "file" not in request.files:
        return jsonify({"error": "No file uploaded."}), 400

    audio_file = request.files["file"]
    input_bytes: bytes = audio_file.read()

    if not input_bytes:
        return jsonify({"error": "Empty file uploaded."}), 400
    if len(input_bytes) > MAX_UPLOAD_BYTES:
        return jsonify({"error": "File too large. Maximum size is 100 MB."}), 413

    if not _validate_magic_bytes(input_bytes[:16]):
        logger.warning(
            "upload rejected ip=%s reason=invalid_magic_bytes",
            request.remote_addr,
        )
        return jsonify({"error": "Unsupported or invalid audio file."}), 415

    try:
        params = _params_from_form(request.form)
    except KeyError as e:
        return jsonify({"error": str(e.args[0])}), 400

    safe_name = _sanitize_filename(audio_file.filename or "") or "upload.mp3"

    logger.info(
        "upload accepted ip=%s size=%dB tempo=%s pitch=%d reverb=%d",
        request.remote_addr, len(input_bytes),
        params.tempo, params.pitch_semitones, params.reverb_percent,
    )

    job_id: str = str(uuid.uuid4())
    set_job(job_id, new_job_record(safe_name, params.as_dict()))

    thread = threading.Thread(
        target=_run_processing,
        args=(job_id, input_bytes, safe_name, params),
        daemon=True,
    )
    thread.start()

    return jsonify({"jobId": job_id}), 202


@app.route("/status/<job_id>", methods=["GET"])
def get_status(job_id: str):
    """
    GET /status/<jobId>
    Returns: { status, progress, step, error }
    """
    if not _is_valid_job_id(job_id):
        return jsonify({"error": "Invalid job ID."}), 400

    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found."}), 404
    return jsonify({
        "status":   job["status"],
        "progress": job["progress"],
        "step":     job["step"],
        "error":    job["error"],
    })


@app.route("/download/<job_id>", methods=["GET"])
def download_file(job_id: str):
    """
    GET /download/<jobId>
    Returns the processed MP3 as a binary download.
    """
    if not _is_valid_job_id(job_id):
        return jsonify({"error": "Invalid job ID."}), 400

    job = get_job(job_id)
    if not job:
        return jsonify({"error": "File has expired. Please process it again."}), 404
    if job["status"] != "done" or job["artifact"] is None:
        return jsonify({"error": "File not ready."}), 404

    artifact = job["artifact"]

    download_name = artifact.file_name
    if request.args.get("name"):
        download_name = _sanitize_filename(request.args["name"]) or artifact.file_name

    return send_file(
        io.BytesIO(artifact.data),
        mimetype=artifact.mime_type,
        as_attachment=True,
        download_name=download_name,
    )


@app.route("/presets", methods=["GET"])
def get_presets():
    """GET /presets: the one-click settings, in display order."""
    return jsonify({"presets": [p.as_dict() for p in list_presets()]})


# ════════════════════════════════════════════════════════════════════
# Error handlers & Security headers
# ════════════════════════════════════════════════════════════════════

@app.errorhandler(413)
def request_entity_too_large(e):
    return jsonify({"error": "File too large. Maximum size is 100 MB."}), 413


@app.errorhandler(404)
def not_found(e):
    path = request.path
    suspicious = any(p in path for p in ["..", "etc", "passwd", "wp-admin", ".env"])
    if suspicious:
        logger.warning("suspicious 404 ip=%s path=%s", request.remote_addr, path)
    return jsonify({"error": "Not found."}), 404


@app.errorhandler(Exception)
def handle_exception(e):
    """Generic handler: never leak internal details to client."""
    logger.error("unhandled exception: %s", e, exc_info=True)
    return jsonify({"error": "An internal error occurred."}), 500


@app.after_request
def set_security_headers(response):
    """Add security headers to every response."""
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = (
        "camera=(), microphone=(), geolocation=(), payment=()"
    )
    return response


# ════════════════════════════════════════════════════════════════════
# Entry point
# ════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    debug_mode = os.environ.get("FLASK_DEBUG", "false").lower() == "true"
    app.run(debug=debug_mode, port=5000)
