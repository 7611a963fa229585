from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from connectr.models.connection import Connection, PENDING, make_pair_key
from connectr.models.user import utcnow


class ConnectionStore:
    """
    Persistence for Connection rows. No business rules live here; the
    service decides what is allowed and the database enforces pair
    uniqueness and the pending-only status write.
    """

    def __init__(self, db: Session):
        self.db = db

    # --------------------------------------------------
    # WRITE
    # --------------------------------------------------
    def insert(self, user_id: str, friend_id: str, status: str = PENDING) -> Connection:
        """
        Raises IntegrityError (after rolling back) when the pair already
        exists in either direction.
        """
        now = utcnow()
        conn = Connection(
            user_id=user_id,
            friend_id=friend_id,
            pair_key=make_pair_key(user_id, friend_id),
            status=status,
            created_at=now,
            updated_at=now,
        )

        self.db.add(conn)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise

        self.db.refresh(conn)
        return conn

    def update_status_if_pending(self, connection_id: int, new_status: str) -> Optional[Connection]:
        # Compare-and-set: only a row still pending at write time is touched
        updated = (
            self.db.query(Connection)
            .filter(
                Connection.id == connection_id,
                Connection.status == PENDING,
            )
            .update(
                {
                    Connection.status: new_status,
                    Connection.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()

        if updated == 0:
            return None

        return self.find_by_id(connection_id)

    def delete_by_id(self, connection_id: int) -> bool:
        deleted = (
            self.db.query(Connection)
            .filter(Connection.id == connection_id)
            .delete()
        )
        self.db.commit()
        return deleted > 0

    # --------------------------------------------------
    # READ
    # --------------------------------------------------
    def find_by_id(self, connection_id: int) -> Optional[Connection]:
        return (
            self.db.query(Connection)
            .filter(Connection.id == connection_id)
            .populate_existing()
            .first()
        )

    def find_by_unordered_pair(self, user_a_id: str, user_b_id: str) -> Optional[Connection]:
        return (
            self.db.query(Connection)
            .filter(Connection.pair_key == make_pair_key(user_a_id, user_b_id))
            .first()
        )

    def find_all_for_user(self, user_id: str, status: Optional[str] = None) -> list[Connection]:
        query = self.db.query(Connection).filter(
            or_(
                Connection.user_id == user_id,
                Connection.friend_id == user_id,
            )
        )

        if status:
            query = query.filter(Connection.status == status)

        # Newest first; equal timestamps keep insertion order
        return (
            query.order_by(Connection.created_at.desc(), Connection.id.asc())
            .all()
        )

    def find_pending_received_by_user(self, user_id: str) -> list[Connection]:
        return (
            self.db.query(Connection)
            .filter(
                Connection.friend_id == user_id,
                Connection.status == PENDING,
            )
            .order_by(Connection.created_at.desc(), Connection.id.asc())
            .all()
        )
