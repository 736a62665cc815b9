from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import Settings
from database import AdminStore
from errors import Unauthorized
from schemas import Admin, AdminOut

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def ensure_default_admin(admins: AdminStore, settings: Settings) -> Admin:
    existing = admins.get_by_email(settings.ADMIN_EMAIL)
    if existing:
        return existing
    return admins.create(
        name=settings.ADMIN_NAME,
        email=settings.ADMIN_EMAIL,
        password_hash=get_password_hash(settings.ADMIN_PASSWORD),
    )


def authenticate(admins: AdminStore, email: str, password: str) -> Admin:
    admin = admins.get_by_email(email)
    if not admin or not verify_password(password, admin.password_hash):
        raise Unauthorized("Incorrect email or password")
    return admin


def require_admin(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> AdminOut:
    if not token:
        raise Unauthorized()
    settings: Settings = request.app.state.settings
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        admin_id: str = payload.get("sub")
        if admin_id is None:
            raise Unauthorized("Could not validate credentials")
    except JWTError:
        raise Unauthorized("Could not validate credentials")
    admin = request.app.state.admins.get(admin_id)
    if not admin:
        raise Unauthorized("Could not validate credentials")
    return AdminOut(id=admin.id, name=admin.name, email=admin.email, role=admin.role)
