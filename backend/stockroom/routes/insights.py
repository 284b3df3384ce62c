# Overview: Flask API routes for AI-generated inventory insights.

from flask import Blueprint, jsonify

from ..decorators import require_auth, require_permission
from ..services import insights_service
from ..services.insights_service import InsightsError


insights_bp = Blueprint("insights", __name__, url_prefix="/api/insights")


@insights_bp.post("")
@require_auth
@require_permission("can_view_insights")
def generate_insights_route():
    """
    Snapshot the inventory and ask the model for recommendations.

    Returns {"insights": "<markdown text>", "summary": {...}}.
    """
    payload = insights_service.build_inventory_payload()
    try:
        text = insights_service.generate_insights(payload)
    except InsightsError as e:
        return jsonify({"error": str(e)}), e.status_code

    return jsonify({"insights": text, "summary": payload["summary"]})
