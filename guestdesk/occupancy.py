"""
Guest registration and occupancy rules.

A self-registration is reconciled against the approved guests of the hotel:
an exact repeat of an active stay is let back in, a clash on the room or the
mobile number is refused, and anything else becomes a pending registration
for staff to approve. The "one approved guest per room" rule is also backed
by the ``uq_guests_approved_room`` partial unique index, so the approval
write itself can never produce two occupants.
"""
import logging
from datetime import datetime
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .circuit_breaker import db_write_breaker
from .exceptions import Conflict, ValidationFailed

logger = logging.getLogger(__name__)

AUTO_APPROVED = "Welcome back! Auto-approved."
AWAITING_APPROVAL = "Registration submitted. Awaiting staff approval."
ROOM_OCCUPIED = "This room is currently occupied by another guest."
MOBILE_ACTIVE = "This mobile number is already registered to an active guest."
DEFAULT_REJECTION_REASON = "Invalid details provided"


class RegistrationOutcome(NamedTuple):
    guest: models.Guest
    created: bool
    message: str


def normalize_name(name: str) -> str:
    return name.strip().upper()


def normalize_room_number(room_number: str) -> str:
    return room_number.strip().upper()


def check_room_in_range(hotel: models.Hotel, room_number: str) -> None:
    """
    Reject room numbers outside the hotel's configured range.

    Hotels without a range accept any room number. With a range, the room
    number is compared numerically and must lie within [start, end].
    """
    room_range = hotel.room_range
    if room_range is None:
        return
    try:
        number = int(room_number)
    except ValueError:
        raise ValidationFailed("Room number must be numeric for this hotel")
    if not room_range["start"] <= number <= room_range["end"]:
        raise ValidationFailed(
            f"Room number must be between {room_range['start']} and {room_range['end']}"
        )


def active_guests(db: Session, hotel_id: int, now: datetime):
    """Approved guests of a hotel whose stay has not ended yet."""
    return db.query(models.Guest).filter(
        models.Guest.hotel_id == hotel_id,
        models.Guest.status == models.GUEST_APPROVED,
        models.Guest.check_out_date > now,
    )


def register_guest(
    db: Session,
    hotel: models.Hotel,
    registration: schemas.GuestRegistration,
    now: Optional[datetime] = None,
) -> RegistrationOutcome:
    """
    Decide the outcome of a guest self-registration.

    Returns the matched or newly created guest. Raises ``ValidationFailed``
    for a past checkout or a room outside the hotel's range, and
    ``Conflict`` when the room or the mobile number belongs to another
    active stay. At most one row is written (the new pending guest).
    """
    now = now or datetime.utcnow()

    if registration.check_out_date <= now:
        raise ValidationFailed("Check-out date must be in the future")

    name = normalize_name(registration.name)
    room_number = normalize_room_number(registration.room_number)
    mobile_number = registration.mobile_number.strip()

    check_room_in_range(hotel, room_number)

    returning = active_guests(db, hotel.id, now).filter(
        models.Guest.name == name,
        models.Guest.room_number == room_number,
        models.Guest.mobile_number == mobile_number,
        models.Guest.check_out_date == registration.check_out_date,
    ).first()
    if returning:
        logger.info("Guest %s re-registered for room %s of hotel %s", returning.id, room_number, hotel.id)
        return RegistrationOutcome(returning, False, AUTO_APPROVED)

    occupant = active_guests(db, hotel.id, now).filter(models.Guest.room_number == room_number).first()
    if occupant:
        logger.info("Registration refused: room %s of hotel %s is occupied", room_number, hotel.id)
        raise Conflict(ROOM_OCCUPIED)

    mobile_holder = active_guests(db, hotel.id, now).filter(
        models.Guest.mobile_number == mobile_number
    ).first()
    if mobile_holder:
        logger.info("Registration refused: mobile already active at hotel %s", hotel.id)
        raise Conflict(MOBILE_ACTIVE)

    guest = models.Guest(
        hotel_id=hotel.id,
        name=name,
        room_number=room_number,
        mobile_number=mobile_number,
        check_out_date=registration.check_out_date,
        status=models.GUEST_PENDING,
    )

    @db_write_breaker
    def _save_guest():
        db.add(guest)
        db.commit()
        db.refresh(guest)
        return guest

    try:
        _save_guest()
    except Exception:
        db.rollback()
        raise

    logger.info("Guest %s registered for room %s of hotel %s, pending approval", guest.id, room_number, hotel.id)
    return RegistrationOutcome(guest, True, AWAITING_APPROVAL)


def approve_guest(db: Session, guest: models.Guest, now: Optional[datetime] = None) -> models.Guest:
    """
    Move a pending guest to approved.

    Approving an already approved guest is a no-op. Stays in the same room
    whose checkout has passed are checked out first, then the guest is
    approved with a conditional update. If another approved guest still
    holds the room the unique index rejects the write and ``Conflict`` is
    raised. A mobile number already held by another active stay is refused
    the same way.
    """
    now = now or datetime.utcnow()

    if guest.status == models.GUEST_APPROVED:
        return guest
    if guest.status != models.GUEST_PENDING:
        raise Conflict(f"Cannot approve a guest who is {guest.status}")
    if guest.check_out_date <= now:
        raise ValidationFailed("Check-out date has already passed")

    mobile_holder = active_guests(db, guest.hotel_id, now).filter(
        models.Guest.mobile_number == guest.mobile_number,
        models.Guest.id != guest.id,
    ).first()
    if mobile_holder:
        raise Conflict(MOBILE_ACTIVE)

    try:
        db.query(models.Guest).filter(
            models.Guest.hotel_id == guest.hotel_id,
            models.Guest.room_number == guest.room_number,
            models.Guest.status == models.GUEST_APPROVED,
            models.Guest.check_out_date <= now,
        ).update(
            {models.Guest.status: models.GUEST_CHECKED_OUT, models.Guest.updated_at: now},
            synchronize_session=False,
        )
        changed = db.query(models.Guest).filter(
            models.Guest.id == guest.id,
            models.Guest.status == models.GUEST_PENDING,
        ).update(
            {models.Guest.status: models.GUEST_APPROVED, models.Guest.updated_at: now},
            synchronize_session=False,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Approval of guest %s refused: room %s already occupied", guest.id, guest.room_number)
        raise Conflict(ROOM_OCCUPIED)

    db.refresh(guest)
    if not changed and guest.status != models.GUEST_APPROVED:
        # someone else moved the guest out of pending in the meantime
        raise Conflict(f"Cannot approve a guest who is {guest.status}")

    logger.info("Guest %s approved for room %s of hotel %s", guest.id, guest.room_number, guest.hotel_id)
    return guest


def reject_guest(db: Session, guest: models.Guest, reason: Optional[str] = None) -> models.Guest:
    """Move a pending guest to rejected. Rejecting twice is a no-op."""
    if guest.status == models.GUEST_REJECTED:
        return guest
    if guest.status != models.GUEST_PENDING:
        raise Conflict(f"Cannot reject a guest who is {guest.status}")

    guest.status = models.GUEST_REJECTED
    guest.rejection_reason = reason or DEFAULT_REJECTION_REASON
    db.commit()
    db.refresh(guest)

    logger.info("Guest %s rejected: %s", guest.id, guest.rejection_reason)
    return guest
