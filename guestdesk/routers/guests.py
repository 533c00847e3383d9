from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pybreaker import CircuitBreakerError
from sqlalchemy.orm import Session

from .. import schemas, models, occupancy
from ..deps import GUEST_COOKIE, create_guest_token, ensure_same_hotel, get_current_hotel, get_db

router = APIRouter(prefix="/guests", tags=["guests"])


def _get_hotel_or_404(db: Session, hotel_id: int) -> models.Hotel:
    hotel = db.get(models.Hotel, hotel_id)
    if not hotel:
        raise HTTPException(status_code=404, detail="Hotel not found")
    return hotel


def _get_own_guest(db: Session, guest_id: int, current_hotel: models.Hotel) -> models.Guest:
    guest = db.get(models.Guest, guest_id)
    if not guest:
        raise HTTPException(status_code=404, detail="Guest not found")
    if guest.hotel_id != current_hotel.id:
        raise HTTPException(status_code=403, detail="Not allowed to manage this guest")
    return guest


@router.get("/verify-hotel/{hotel_id}", response_model=schemas.HotelPublic)
def verify_hotel(hotel_id: int, db: Session = Depends(get_db)):
    """
    Resolve the hotel behind a registration link (QR code) before the guest fills in the form.
    """
    return _get_hotel_or_404(db, hotel_id)


@router.post("/register/{hotel_id}", response_model=schemas.RegistrationResult)
def register_guest(
    hotel_id: int,
    registration: schemas.GuestRegistration,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Guest self-registration.

    - An exact repeat of an active approved stay (same name, room, mobile
      and checkout) is let back in with **200** and a token for that stay.
    - A room or mobile number held by another active guest is refused with **400**.
    - Otherwise a **pending** guest is created (**201**) and staff must approve it.

    The token is also set as an http-only ``guest_token`` cookie that lasts
    until checkout.

    Raises
    ------
    HTTPException
        - 400 for a past checkout date, a room outside the hotel's range,
          or an occupied room / active mobile number.
        - 404 if the hotel does not exist.
        - 503 if the database write path is failing (circuit open).
    """
    hotel = _get_hotel_or_404(db, hotel_id)

    try:
        outcome = occupancy.register_guest(db, hotel, registration)
    except CircuitBreakerError:
        raise HTTPException(
            status_code=503,
            detail="Registration temporarily unavailable. Please try again later.",
        )

    response.status_code = status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
    token = create_guest_token(outcome.guest)
    response.set_cookie(
        GUEST_COOKIE,
        token,
        httponly=True,
        secure=request.url.scheme == "https",
        max_age=max(int((outcome.guest.check_out_date - datetime.utcnow()).total_seconds()), 0),
    )
    return {
        "message": outcome.message,
        "token": token,
        "guest": outcome.guest,
    }


@router.post("/logout")
def guest_logout(response: Response):
    response.delete_cookie(GUEST_COOKIE)
    return {"detail": "Logged out"}


@router.get("/status/{guest_id}", response_model=schemas.GuestStatusOut)
def get_guest_status(guest_id: int, db: Session = Depends(get_db)):
    """
    Poll the approval status of a registration.
    """
    guest = db.get(models.Guest, guest_id)
    if not guest:
        raise HTTPException(status_code=404, detail="Guest not found")
    return guest


@router.get("/pending/{hotel_id}", response_model=List[schemas.GuestOut])
def list_pending_guests(
    hotel_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Registrations waiting for a staff decision, newest first.
    """
    ensure_same_hotel(hotel_id, current_hotel)
    return (
        db.query(models.Guest)
        .filter(models.Guest.hotel_id == hotel_id, models.Guest.status == models.GUEST_PENDING)
        .order_by(models.Guest.created_at.desc(), models.Guest.id.desc())
        .all()
    )


@router.post("/approve/{guest_id}", response_model=schemas.GuestDecision)
def approve_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Approve a pending registration. Approving twice is harmless.

    Raises
    ------
    HTTPException
        - 400 if the room is already held by another approved guest, or the
          guest was rejected / checked out.
        - 403 if the guest belongs to another hotel.
        - 404 if the guest does not exist.
    """
    guest = _get_own_guest(db, guest_id, current_hotel)
    guest = occupancy.approve_guest(db, guest)
    return {"message": "Guest approved successfully", "guest": guest}


@router.post("/reject/{guest_id}", response_model=schemas.GuestDecision)
def reject_guest(
    guest_id: int,
    payload: schemas.GuestRejection | None = None,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Reject a pending registration with an optional reason.

    The guest may register again afterwards; that creates a new pending record.
    """
    guest = _get_own_guest(db, guest_id, current_hotel)
    guest = occupancy.reject_guest(db, guest, payload.reason if payload else None)
    return {"message": "Guest rejected successfully", "guest": guest}


@router.get("/approved/{hotel_id}", response_model=List[schemas.GuestOut])
def list_approved_guests(
    hotel_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Guests currently staying at the hotel, soonest checkout first.
    """
    ensure_same_hotel(hotel_id, current_hotel)
    return (
        occupancy.active_guests(db, hotel_id, datetime.utcnow())
        .order_by(models.Guest.check_out_date.asc())
        .all()
    )
