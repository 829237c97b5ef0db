"""Repository for access-request notifications."""

from typing import Iterable, List, Optional

from ..exceptions import NotificationNotFoundError
from ..models.enums import NotificationStatus, NotificationType
from ..models.resource import utc_now
from ..models.sharing import Notification
from .base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    model_class = Notification
    not_found_error = NotificationNotFoundError

    def find_pending(self, sender_id: str, resource_id: str) -> Optional[Notification]:
        return (
            self.db.query(Notification)
            .filter(
                Notification.sender_id == sender_id,
                Notification.resource_id == resource_id,
                Notification.status == NotificationStatus.PENDING.value,
            )
            .first()
        )

    def create(self, recipient_id: str, sender_id: str, resource_id: str) -> Notification:
        return self._add(Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            resource_id=resource_id,
            type=NotificationType.ACCESS_REQUEST.value,
            status=NotificationStatus.PENDING.value,
        ))

    def mark_resolved(self, notification_id: str, status: NotificationStatus) -> bool:
        """Move a pending notification to *status*.

        The update only matches while the row is still pending, so two
        concurrent resolutions cannot both succeed. Returns False when the
        row was not pending (or no longer exists).
        """
        updated = (
            self._keyed(notification_id)
            .filter(Notification.status == NotificationStatus.PENDING.value)
            .update(
                {"status": status.value, "resolved_at": utc_now()},
                synchronize_session="fetch",
            )
        )
        self.db.flush()
        return updated == 1

    def list_for_recipient(
        self, recipient_id: str, status: Optional[NotificationStatus] = None
    ) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.recipient_id == recipient_id)
        if status is not None:
            query = query.filter(Notification.status == status.value)
        return query.order_by(Notification.created_at.desc(), Notification.id).all()

    def list_for_sender(self, sender_id: str) -> List[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.sender_id == sender_id)
            .order_by(Notification.created_at.desc(), Notification.id)
            .all()
        )

    def delete_for_resources(self, resource_ids: Iterable[str]) -> int:
        resource_ids = list(resource_ids)
        if not resource_ids:
            return 0
        return (
            self.db.query(Notification)
            .filter(Notification.resource_id.in_(resource_ids))
            .delete(synchronize_session=False)
        )
