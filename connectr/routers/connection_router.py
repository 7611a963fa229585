from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from connectr.database import get_db
from connectr.auth import get_current_user
from connectr.core.connection_service import ConnectionService
from connectr.core.connection_store import ConnectionStore
from connectr.core.user_directory import UserDirectory
from connectr.models.user import User
from connectr.schemas.connection_schema import (
    ConnectionCreate,
    ConnectionOut,
    ConnectionStatusOut,
    ConnectionStatusUpdate,
    MessageOut,
)


router = APIRouter(prefix="/connections", tags=["Connections"])


# --------------------------------------------------
# Service dependency (one per request session)
# --------------------------------------------------
def get_connection_service(db: Session = Depends(get_db)) -> ConnectionService:
    return ConnectionService(ConnectionStore(db), UserDirectory(db))


# --------------------------------------------------
# SEND FRIEND REQUEST
# --------------------------------------------------
@router.post(
    "",
    response_model=ConnectionOut,
    status_code=201,
)
def create_connection(
    payload: ConnectionCreate,
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.create(current_user.id, payload.friend_id)


# --------------------------------------------------
# ALL MY CONNECTIONS (optional ?status=)
# --------------------------------------------------
@router.get("", response_model=list[ConnectionOut])
def get_connections(
    status: Optional[str] = None,
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.list(current_user.id, status)


# --------------------------------------------------
# ACCEPTED FRIENDS
# --------------------------------------------------
@router.get("/friends", response_model=list[ConnectionOut])
def get_friends(
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_friends(current_user.id)


# --------------------------------------------------
# INCOMING REQUESTS
# --------------------------------------------------
@router.get("/pending", response_model=list[ConnectionOut])
def get_pending_connections(
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_pending(current_user.id)


# --------------------------------------------------
# CONNECTION STATUS WITH ANOTHER USER (read-only helper)
# --------------------------------------------------
@router.get("/status/{user_id}", response_model=ConnectionStatusOut)
def get_connection_status(
    user_id: str,
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_status_with(current_user.id, user_id)


# --------------------------------------------------
# SINGLE CONNECTION
# --------------------------------------------------
@router.get("/{connection_id}", response_model=ConnectionOut)
def get_connection(
    connection_id: int,
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.get_by_id(connection_id, current_user.id)


# --------------------------------------------------
# ACCEPT / BLOCK
# --------------------------------------------------
@router.patch("/{connection_id}", response_model=ConnectionOut)
def update_connection_status(
    connection_id: int,
    payload: ConnectionStatusUpdate,
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.update_status(connection_id, current_user.id, payload.status)


# --------------------------------------------------
# REMOVE (hard delete, either side)
# --------------------------------------------------
@router.delete("/{connection_id}", response_model=MessageOut)
def remove_connection(
    connection_id: int,
    service: ConnectionService = Depends(get_connection_service),
    current_user: User = Depends(get_current_user),
):
    return service.remove(connection_id, current_user.id)
