from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from .. import schemas, models
from ..config import settings
from ..deps import (
    STAFF_COOKIE,
    authenticate_hotel,
    create_staff_token,
    ensure_same_hotel,
    get_current_hotel,
    get_db,
    get_password_hash,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _apply_room_range(hotel: models.Hotel, room_range: schemas.RoomRange | None) -> None:
    if room_range is None:
        hotel.room_range_start = None
        hotel.room_range_end = None
    else:
        hotel.room_range_start = room_range.start
        hotel.room_range_end = room_range.end


@router.post("/signup", response_model=schemas.StaffToken, status_code=status.HTTP_201_CREATED)
def signup(hotel_in: schemas.HotelSignup, db: Session = Depends(get_db)):
    """
    Register a new hotel tenant.

    Hotel name and email must both be unused. The response carries a staff
    token so the new account is logged in straight away.

    Raises
    ------
    HTTPException
        - 400 if a hotel with the same name or email already exists.
    """
    existing = db.query(models.Hotel).filter(
        (models.Hotel.email == hotel_in.email) | (models.Hotel.hotel_name == hotel_in.hotel_name)
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Hotel already registered with this email or name")

    hotel = models.Hotel(
        hotel_name=hotel_in.hotel_name,
        email=hotel_in.email,
        hashed_password=get_password_hash(hotel_in.password),
        address=hotel_in.address,
        phone_number=hotel_in.phone_number,
        max_rooms=hotel_in.max_rooms,
    )
    _apply_room_range(hotel, hotel_in.room_range)
    db.add(hotel)
    db.commit()
    db.refresh(hotel)
    return {"access_token": create_staff_token(hotel), "token_type": "bearer", "hotel": hotel}


@router.post("/login", response_model=schemas.StaffToken)
def login(
    credentials: schemas.HotelLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Authenticate hotel staff and return a JWT access token.

    The token is also set as an http-only ``staff_token`` cookie.

    Raises
    ------
    HTTPException
        - 401 if credentials are invalid.
    """
    hotel = authenticate_hotel(db, credentials.email, credentials.password)
    if not hotel:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    token = create_staff_token(hotel)
    response.set_cookie(
        STAFF_COOKIE,
        token,
        httponly=True,
        secure=request.url.scheme == "https",
        max_age=settings.access_token_expire_minutes * 60,
    )
    return {"access_token": token, "token_type": "bearer", "hotel": hotel}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(STAFF_COOKIE)
    return {"detail": "Logged out"}


@router.get("/settings/{hotel_id}", response_model=schemas.HotelSettings)
def get_settings(
    hotel_id: int,
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Room capacity settings of the logged-in hotel.
    """
    ensure_same_hotel(hotel_id, current_hotel)
    return current_hotel


@router.patch("/settings", response_model=schemas.HotelSettings)
def update_settings(
    settings_update: schemas.HotelSettingsUpdate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Update ``max_rooms`` and/or ``room_range``.

    Only the fields present in the body change; sending ``room_range: null``
    removes the range check for guest registrations.
    """
    data = settings_update.model_dump(exclude_unset=True)

    if "max_rooms" in data:
        current_hotel.max_rooms = data["max_rooms"]
    if "room_range" in data:
        _apply_room_range(current_hotel, settings_update.room_range)

    db.commit()
    db.refresh(current_hotel)
    return current_hotel
