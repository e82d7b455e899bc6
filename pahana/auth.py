from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import func
from sqlalchemy.orm import Session

from .core.config import settings
from .core.database import get_db
from .core.logging import app_logger
from .models.models import User

ALGORITHM = "HS256"

# Unsalted single-pass SHA-256, hex encoded. Fine for a teaching system,
# unsuitable for any real deployment.
pwd_context = CryptContext(schemes=["hex_sha256"])
security = HTTPBearer()

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def find_user(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.username) == username.lower()).first()

def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    user = find_user(db, username.strip())
    if not user or not verify_password(password, user.password_hash):
        return None
    return user

def ensure_default_admin(db: Session) -> Optional[User]:
    """Create the default admin when no user exists yet."""
    if db.query(User).count() > 0:
        return None

    admin = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD)
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)

    app_logger.warning(f"Default admin created - username: {admin.username}; change its password")
    return admin

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        token = credentials.credentials
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = find_user(db, username)
    if user is None:
        raise credentials_exception

    return user
