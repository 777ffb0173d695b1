from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from farmfresh.extensions import db
from farmfresh.services import NotificationService

api_notification_bp = Blueprint("api_notification", __name__)


@api_notification_bp.get("/me")
@login_required
def my_notifications():
    items = NotificationService(db.session).latest_for_user(current_user.id, limit=20)
    return jsonify(
        [
            {
                "id": n.id,
                "title": n.title,
                "message": n.message,
                "is_read": n.is_read,
                "created_at": n.created_at.isoformat(),
            }
            for n in items
        ]
    )


@api_notification_bp.post("/me/read")
@login_required
def mark_all_read():
    NotificationService(db.session).mark_all_read(current_user.id)
    return jsonify({"ok": True})
