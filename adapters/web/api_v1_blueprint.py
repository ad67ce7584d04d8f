# adapters/web/api_v1_blueprint.py
# REST API Blueprint for programmatic access.

import hmac
import os
from functools import wraps
from flask import Blueprint, request, jsonify, current_app

api_v1 = Blueprint('api_v1', __name__, url_prefix='/api/v1')


def require_api_key(f):
    """Bearer-token check against $API_KEY; open when the variable is unset."""
    @wraps(f)
    def decorated(*args, **kwargs):
        expected_key = os.environ.get("API_KEY")
        if expected_key:
            auth_header = request.headers.get("Authorization", "")
            if not auth_header.startswith("Bearer "):
                return jsonify({"error": "Unauthorized. Missing Bearer token."}), 401
            token = auth_header[len("Bearer "):].strip()
            if not hmac.compare_digest(token, expected_key):
                return jsonify({"error": "Unauthorized. Invalid API key."}), 403
        return f(*args, **kwargs)
    return decorated


@api_v1.route('/process', methods=['POST'])
@require_api_key
def api_process():
    """
    POST /api/v1/process
    Expects multipart/form-data with 'file' and optional tempo/pitch/reverb/preset.
    Returns JSON with jobId.
    """
    return current_app.view_functions["start_processing"]()


@api_v1.route('/status/<job_id>', methods=['GET'])
@require_api_key
def api_status(job_id):
    return current_app.view_functions["get_status"](job_id)


@api_v1.route('/download/<job_id>', methods=['GET'])
@require_api_key
def api_download(job_id):
    return current_app.view_functions["download_file"](job_id)


@api_v1.route('/presets', methods=['GET'])
@require_api_key
def api_presets():
    return current_app.view_functions["get_presets"]()
