from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)

from connectr.database import Base
from connectr.models.user import utcnow


PENDING = "pending"
ACCEPTED = "accepted"
BLOCKED = "blocked"

CONNECTION_STATUSES = (PENDING, ACCEPTED, BLOCKED)
TERMINAL_STATUSES = (ACCEPTED, BLOCKED)


def make_pair_key(user_a_id: str, user_b_id: str) -> str:
    """
    Order-independent key for a pair of users, so (a, b) and (b, a)
    collide on the unique constraint.
    """
    low, high = sorted((str(user_a_id), str(user_b_id)))
    return f"{low}:{high}"


class Connection(Base):
    __tablename__ = "connections"

    id = Column(Integer, primary_key=True, index=True)

    # ------------------------------------
    # Parties (DIRECTIONAL at creation)
    # ------------------------------------
    # Requester
    user_id = Column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Receiver
    friend_id = Column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Symmetric uniqueness of the pair
    pair_key = Column(String, nullable=False, unique=True)

    # ------------------------------------
    # Connection state
    # ------------------------------------
    # pending | accepted | blocked
    status = Column(
        String,
        nullable=False,
        default=PENDING,
        index=True,
    )

    # ------------------------------------
    # Timestamps
    # ------------------------------------
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "user_id != friend_id",
            name="ck_connections_not_self",
        ),
        Index(
            "ix_connections_user_status",
            "user_id",
            "status",
        ),
        Index(
            "ix_connections_friend_status",
            "friend_id",
            "status",
        ),
    )
