from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.auth.permissions import Principal
from backend.core.errors import NotFoundError, PersistenceError
from backend.database import get_db
from backend.models.enums import Role
from backend.models.user import User
from backend.schemas.user import CurrentUserResponse, FacultyResponse, ModeUpdateRequest

router = APIRouter(tags=['faculty'])


def to_faculty_response(user: User) -> FacultyResponse:
    return FacultyResponse(
        id=user.id,
        name=user.full_name or user.email or '',
        department=user.department,
        mode=user.mode,
    )


@router.get('/faculty', response_model=list[FacultyResponse])
def list_faculty(
    q: str | None = Query(default=None),
    _principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(User).filter(User.role == Role.FACULTY.value)

    if q is not None:
        term = q.strip().lower()
        if not term:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Query string cannot be empty.',
            )
        pattern = f'%{term}%'
        query = query.filter(
            or_(
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
                func.lower(User.department).like(pattern),
            )
        )

    try:
        faculty = query.order_by(User.first_name.asc(), User.id.asc()).all()
    except SQLAlchemyError as exc:
        raise PersistenceError() from exc

    return [to_faculty_response(user) for user in faculty]


@router.patch('/users/me/mode', response_model=CurrentUserResponse)
def update_my_mode(
    data: ModeUpdateRequest,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user = db.query(User).filter(User.id == principal.user_id).first()
        if user is None:
            raise NotFoundError('User not found.')

        user.mode = data.mode.value
        db.commit()
        db.refresh(user)
        return user
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError() from exc
