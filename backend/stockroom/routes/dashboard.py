# Overview: Flask API routes for the dashboard and the notification panel.

"""
Dashboard & Notifications

- GET  /api/dashboard/stats: headline counts and inventory value
- GET  /api/dashboard/low-stock: products below threshold
- GET  /api/notifications: open low-stock alerts (max 10) and unresolved
  fraud alerts (max 5), newest first
- POST /api/notifications/<id>/acknowledge
- POST /api/notifications/fraud/<id>/resolve
"""

from flask import Blueprint, jsonify, g, request

from ..decorators import require_auth
from ..services import dashboard_service, stock_service
from ..validation import NotFoundError


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")
notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    return jsonify(dashboard_service.get_dashboard_stats())


@dashboard_bp.get("/low-stock")
@require_auth
def low_stock_route():
    limit = min(max(request.args.get("limit", 10, type=int), 1), 100)
    products = dashboard_service.list_low_stock_products(limit=limit)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    low_stock = stock_service.list_open_alerts(limit=10)
    fraud = stock_service.list_open_fraud_alerts(limit=5)
    return jsonify({
        "low_stock": [a.to_dict() for a in low_stock],
        "fraud": [a.to_dict() for a in fraud],
        "count": len(low_stock) + len(fraud),
    })


@notifications_bp.post("/<int:alert_id>/acknowledge")
@require_auth
def acknowledge_notification_route(alert_id: int):
    try:
        alert = stock_service.acknowledge_alert(g.session_context, alert_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(alert.to_dict())


@notifications_bp.post("/fraud/<int:alert_id>/resolve")
@require_auth
def resolve_fraud_alert_route(alert_id: int):
    try:
        alert = stock_service.resolve_fraud_alert(g.session_context, alert_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(alert.to_dict())
