from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import authenticate_user, create_access_token
from ..core.database import get_db
from ..core.logging import app_logger
from ..schemas.schemas import Token, UserLogin

router = APIRouter(prefix="/auth", tags=["Auth"])

@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange username and password for a bearer token"""
    user = authenticate_user(db, credentials.username, credentials.password)
    if not user:
        app_logger.warning(f"Failed login for {credentials.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    app_logger.info(f"User {user.username} authenticated successfully")
    return Token(access_token=create_access_token({"sub": user.username}))
