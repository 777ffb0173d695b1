from farmfresh.models import Notification


class NotificationService:
    def __init__(self, session):
        self.session = session

    def push(self, user_id, title, message):
        notification = Notification(user_id=user_id, title=title, message=message)
        self.session.add(notification)
        self.session.flush()
        return notification

    def unread_count(self, user_id):
        return self.session.query(Notification).filter_by(user_id=user_id, is_read=False).count()

    def latest_for_user(self, user_id, limit=10):
        return (
            self.session.query(Notification)
            .filter_by(user_id=user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    def mark_all_read(self, user_id):
        self.session.query(Notification).filter_by(user_id=user_id, is_read=False).update({"is_read": True})
        self.session.commit()
