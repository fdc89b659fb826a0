from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.auth.permissions import Principal
from backend.database import get_db
from backend.models.user import User
from backend.schemas.user import CurrentUserResponse

router = APIRouter(tags=['auth'])


@router.get('/me', response_model=CurrentUserResponse)
def me(principal: Principal = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(User).filter(User.id == principal.user_id).first()
