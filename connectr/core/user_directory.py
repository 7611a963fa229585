from typing import Iterable

from sqlalchemy.orm import Session

from connectr.core.errors import NotFoundError
from connectr.models.user import User
from connectr.schemas.user_schema import PublicProfile


class UserDirectory:
    """
    Read-only lookups of users and their public projection
    (id, name, email, profile_url).
    """

    def __init__(self, db: Session):
        self.db = db

    def exists(self, user_id: str) -> bool:
        return (
            self.db.query(User.id)
            .filter(User.id == user_id)
            .first()
            is not None
        )

    def get_public_profile(self, user_id: str) -> PublicProfile:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return PublicProfile.model_validate(user)

    def get_public_profiles(self, user_ids: Iterable[str]) -> dict[str, PublicProfile]:
        """
        Batched lookup keyed by user id. Unknown ids are simply absent.
        """
        ids = set(user_ids)
        if not ids:
            return {}

        users = self.db.query(User).filter(User.id.in_(ids)).all()
        return {u.id: PublicProfile.model_validate(u) for u in users}

    def search(self, term: str | None, exclude_user_id: str, limit: int = 20) -> list[PublicProfile]:
        query = self.db.query(User).filter(
            User.id != exclude_user_id,
            User.is_active.is_(True),
        )

        if term:
            pattern = f"%{term.strip()}%"
            query = query.filter(
                User.name.ilike(pattern) | User.email.ilike(pattern)
            )

        users = query.order_by(User.name.asc()).limit(limit).all()
        return [PublicProfile.model_validate(u) for u in users]
