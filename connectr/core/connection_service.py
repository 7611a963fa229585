from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from connectr.core.connection_store import ConnectionStore
from connectr.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
)
from connectr.core.user_directory import UserDirectory
from connectr.models.connection import (
    Connection,
    CONNECTION_STATUSES,
    TERMINAL_STATUSES,
    ACCEPTED,
    BLOCKED,
    PENDING,
)
from connectr.schemas.connection_schema import ConnectionOut
from connectr.schemas.user_schema import PublicProfile

logger = logging.getLogger(__name__)


# --------------------------------------------------
# FRIEND-PERSPECTIVE VIEW
# --------------------------------------------------
def other_party_id(conn: Connection, viewer_id: str) -> str:
    return conn.friend_id if conn.user_id == viewer_id else conn.user_id


def to_friend_view(
    conn: Connection,
    viewer_id: str,
    profiles: dict[str, PublicProfile],
) -> ConnectionOut:
    """
    Shape a stored connection for ``viewer_id``: ``friend`` is always the
    other party, whichever side the viewer is on.
    """
    friend_id = other_party_id(conn, viewer_id)
    friend = profiles.get(friend_id)
    if friend is None:
        raise NotFoundError("Friend not found")

    return ConnectionOut(
        id=conn.id,
        user_id=conn.user_id,
        friend_id=conn.friend_id,
        status=conn.status,
        created_at=conn.created_at,
        updated_at=conn.updated_at,
        friend=friend,
    )


def is_party(conn: Connection, user_id: str) -> bool:
    return user_id in (conn.user_id, conn.friend_id)


class ConnectionService:
    """
    Friend-connection lifecycle.

    A connection is created ``pending`` by the requester, moved once to
    ``accepted`` or ``blocked`` by the receiver, and hard-deleted by either
    party. At most one connection exists per unordered pair of users.
    """

    def __init__(self, store: ConnectionStore, users: UserDirectory):
        self.store = store
        self.users = users

    # --------------------------------------------------
    # helpers
    # --------------------------------------------------
    def _view(self, conn: Connection, viewer_id: str) -> ConnectionOut:
        friend_id = other_party_id(conn, viewer_id)
        profiles = self.users.get_public_profiles([friend_id])
        return to_friend_view(conn, viewer_id, profiles)

    def _views(self, conns: list[Connection], viewer_id: str) -> list[ConnectionOut]:
        profiles = self.users.get_public_profiles(
            other_party_id(c, viewer_id) for c in conns
        )
        return [to_friend_view(c, viewer_id, profiles) for c in conns]

    def _get_as_party(self, connection_id: int, caller_id: str) -> Connection:
        conn = self.store.find_by_id(connection_id)
        if not conn:
            raise NotFoundError("Connection not found")

        if not is_party(conn, caller_id):
            raise ForbiddenError("Access denied")

        return conn

    # --------------------------------------------------
    # CREATE
    # --------------------------------------------------
    def create(self, requester_id: str, target_user_id: str) -> ConnectionOut:
        if requester_id == target_user_id:
            raise InvalidOperationError("Cannot connect with yourself")

        if not self.users.exists(target_user_id):
            raise NotFoundError("Friend not found")

        if self.store.find_by_unordered_pair(requester_id, target_user_id):
            raise ConflictError("Connection already exists")

        try:
            conn = self.store.insert(requester_id, target_user_id)
        except IntegrityError:
            # Another request created the pair between our check and insert
            logger.warning(
                "Lost create race for pair %s/%s", requester_id, target_user_id
            )
            raise ConflictError("Connection already exists")

        logger.info(
            "Connection %s requested by %s to %s",
            conn.id, requester_id, target_user_id,
        )
        return self._view(conn, requester_id)

    # --------------------------------------------------
    # READ
    # --------------------------------------------------
    def list(self, caller_id: str, status: Optional[str] = None) -> list[ConnectionOut]:
        if status and status not in CONNECTION_STATUSES:
            raise InvalidOperationError(
                f"Invalid status '{status}', expected one of: "
                + ", ".join(CONNECTION_STATUSES)
            )

        conns = self.store.find_all_for_user(caller_id, status)
        return self._views(conns, caller_id)

    def get_friends(self, caller_id: str) -> list[ConnectionOut]:
        return self.list(caller_id, ACCEPTED)

    def get_pending(self, caller_id: str) -> list[ConnectionOut]:
        """Incoming requests only; outgoing ones show up in ``list(..., 'pending')``."""
        conns = self.store.find_pending_received_by_user(caller_id)
        return self._views(conns, caller_id)

    def get_by_id(self, connection_id: int, caller_id: str) -> ConnectionOut:
        conn = self._get_as_party(connection_id, caller_id)
        return self._view(conn, caller_id)

    def get_status_with(self, caller_id: str, other_user_id: str) -> dict:
        """
        How the caller relates to another user: self, none, incoming_pending,
        outgoing_pending, accepted or blocked.
        """
        if other_user_id == caller_id:
            return {"status": "self", "connection_id": None}

        if not self.users.exists(other_user_id):
            raise NotFoundError("User not found")

        conn = self.store.find_by_unordered_pair(caller_id, other_user_id)
        if not conn:
            return {"status": "none", "connection_id": None}

        if conn.status == PENDING:
            status = (
                "incoming_pending"
                if conn.friend_id == caller_id
                else "outgoing_pending"
            )
        else:
            status = conn.status

        return {"status": status, "connection_id": conn.id}

    # --------------------------------------------------
    # ACCEPT / BLOCK
    # --------------------------------------------------
    def update_status(self, connection_id: int, caller_id: str, new_status: str) -> ConnectionOut:
        if new_status not in TERMINAL_STATUSES:
            raise InvalidOperationError(
                f"Invalid status '{new_status}', expected '{ACCEPTED}' or '{BLOCKED}'"
            )

        conn = self.store.find_by_id(connection_id)
        if not conn:
            raise NotFoundError("Connection not found")

        if conn.friend_id != caller_id:
            raise ForbiddenError("Only the receiver can update connection status")

        if conn.status != PENDING:
            raise ConflictError("Connection status cannot be changed")

        updated = self.store.update_status_if_pending(connection_id, new_status)
        if updated is None:
            if self.store.find_by_id(connection_id) is None:
                raise NotFoundError("Connection not found")

            logger.warning(
                "Lost status race on connection %s (wanted %s)",
                connection_id, new_status,
            )
            raise ConflictError("Connection status cannot be changed")

        logger.info(
            "Connection %s %s by %s", connection_id, new_status, caller_id
        )
        return self._view(updated, caller_id)

    # --------------------------------------------------
    # REMOVE
    # --------------------------------------------------
    def remove(self, connection_id: int, caller_id: str) -> dict:
        self._get_as_party(connection_id, caller_id)

        if not self.store.delete_by_id(connection_id):
            raise NotFoundError("Connection not found")

        logger.info("Connection %s removed by %s", connection_id, caller_id)
        return {"message": "Connection removed successfully"}
