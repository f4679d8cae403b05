from flask import Blueprint, current_app, jsonify, request

from aupgrab.extensions import limiter

api_bp = Blueprint("api", __name__)


def _router():
    return current_app.extensions["aupgrab"].router


@api_bp.post("")
def post_action():
    payload, status = _router().handle_post(request.get_data(as_text=True))
    return jsonify(payload), status


@api_bp.get("")
def get_action():
    payload, status = _router().handle_get(request.args.to_dict())
    return jsonify(payload), status


@api_bp.get("/health")
@limiter.exempt
def health():
    return jsonify({"success": True, "message": "ok"})
