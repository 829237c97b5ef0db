"""Repository for user rows. Emails are stored and matched lower-cased."""

from typing import Optional

from ..exceptions import UserNotFoundError
from ..models.user import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    model_class = User
    id_column = "user_id"
    not_found_error = UserNotFoundError

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def create(self, user_id: str, email: Optional[str], display_name: str, role: str) -> User:
        return self._add(User(
            user_id=user_id,
            email=email.strip().lower() if email else None,
            display_name=display_name,
            role=role,
            is_active=True,
        ))
