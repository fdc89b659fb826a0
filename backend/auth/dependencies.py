from fastapi import Depends, HTTPException, Query, WebSocketException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.permissions import Principal
from backend.database import get_db
from backend.models.enums import Role
from backend.models.user import User

security = HTTPBearer()


class InvalidCredentials(Exception):
    pass


def resolve_principal(token: str, db: Session) -> Principal:
    """Turn a bearer token into the caller's identity and role."""
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise InvalidCredentials("Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise InvalidCredentials("Invalid token subject")

    user = db.query(User).filter(User.id == int(subject)).first()
    if user is None:
        raise InvalidCredentials("User not found")
    try:
        role = Role(user.role)
    except ValueError as exc:
        raise InvalidCredentials("Unknown user role") from exc
    return Principal(user_id=user.id, role=role)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    try:
        return resolve_principal(credentials.credentials, db)
    except InvalidCredentials as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def get_websocket_principal(
    token: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> Principal:
    if not token:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
    try:
        return resolve_principal(token, db)
    except InvalidCredentials as exc:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc)) from exc
    finally:
        # The socket outlives this lookup; do not hold a connection for it.
        db.close()
