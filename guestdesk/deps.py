from datetime import datetime, timedelta
from typing import Generator

from . import models
from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal
from . import schemas


# ----- DB -----
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ----- Auth / JWT -----
STAFF_ROLE = "staff"
GUEST_ROLE = "guest"
ADMIN_ROLE = "admin"

STAFF_COOKIE = "staff_token"
GUEST_COOKIE = "guest_token"
ADMIN_COOKIE = "admin_token"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Tokens come from the Authorization header or, failing that, a cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
    expires_at: datetime | None = None,
) -> str:
    to_encode = data.copy()
    if expires_at is None:
        expires_at = datetime.utcnow() + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
    to_encode.update({"exp": expires_at})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_staff_token(hotel: models.Hotel) -> str:
    return create_access_token({"sub": str(hotel.id), "role": STAFF_ROLE})


def create_guest_token(guest: models.Guest) -> str:
    """
    Guest sessions are bound to one guest record and expire at its checkout date.
    """
    return create_access_token(
        {
            "sub": str(guest.id),
            "role": GUEST_ROLE,
            "hotel_id": guest.hotel_id,
            "check_out_date": guest.check_out_date.isoformat(),
        },
        expires_at=guest.check_out_date,
    )


def create_admin_token(admin: models.Admin) -> str:
    return create_access_token(
        {"sub": str(admin.id), "role": ADMIN_ROLE},
        expires_delta=timedelta(hours=24),
    )


def authenticate_hotel(db: Session, email: str, password: str) -> models.Hotel | None:
    hotel = db.query(models.Hotel).filter(models.Hotel.email == email).first()
    if not hotel:
        return None
    if not verify_password(password, hotel.hashed_password):
        return None
    return hotel


def authenticate_admin(db: Session, username: str, password: str) -> models.Admin | None:
    admin = db.query(models.Admin).filter(models.Admin.username == username).first()
    if not admin:
        return None
    if not verify_password(password, admin.hashed_password):
        return None
    return admin


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str | None, role: str, expired_detail: str = "Token has expired") -> schemas.TokenData:
    if not token:
        raise _credentials_exception("Authentication required")
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        raise _credentials_exception(expired_detail)
    except JWTError:
        raise _credentials_exception()

    subject = payload.get("sub")
    if subject is None or payload.get("role") != role:
        raise _credentials_exception("Invalid token format")
    try:
        return schemas.TokenData(subject=int(subject), role=role)
    except ValueError:
        raise _credentials_exception("Invalid token format")


async def get_current_hotel(
    token: str | None = Depends(oauth2_scheme),
    staff_token: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> models.Hotel:
    token_data = decode_token(token or staff_token, STAFF_ROLE)
    hotel = db.get(models.Hotel, token_data.subject)
    if hotel is None:
        raise _credentials_exception("Hotel not found")
    return hotel


async def get_current_guest(
    token: str | None = Depends(oauth2_scheme),
    guest_token: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> models.Guest:
    token_data = decode_token(token or guest_token, GUEST_ROLE, expired_detail="Stay period has expired")
    guest = db.get(models.Guest, token_data.subject)
    if guest is None:
        raise HTTPException(status_code=404, detail="Guest not found")
    if guest.check_out_date <= datetime.utcnow():
        raise _credentials_exception("Stay period has expired")
    return guest


async def get_approved_guest(
    guest: models.Guest = Depends(get_current_guest),
) -> models.Guest:
    """
    Usage: guest: models.Guest = Depends(get_approved_guest)

    Guests may only order food or raise complaints once staff approved them.
    """
    if guest.status != models.GUEST_APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Awaiting staff approval",
        )
    return guest


async def get_current_admin(
    token: str | None = Depends(oauth2_scheme),
    admin_token: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> models.Admin:
    token_data = decode_token(token or admin_token, ADMIN_ROLE)
    admin = db.get(models.Admin, token_data.subject)
    if admin is None:
        raise _credentials_exception()
    return admin


def ensure_same_hotel(hotel_id: int, current_hotel: models.Hotel) -> None:
    if hotel_id != current_hotel.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another hotel's data",
        )
