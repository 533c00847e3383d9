from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas, models
from ..deps import get_approved_guest, get_current_hotel, get_db

router = APIRouter(prefix="/complaints", tags=["complaints"])


def _get_own_predefined(db: Session, predefined_id: int, current_hotel: models.Hotel) -> models.PredefinedComplaint:
    predefined = db.get(models.PredefinedComplaint, predefined_id)
    if not predefined:
        raise HTTPException(status_code=404, detail="Predefined complaint not found")
    if predefined.hotel_id != current_hotel.id:
        raise HTTPException(status_code=403, detail="Not allowed to manage this predefined complaint")
    return predefined


def _get_hotel_complaint(db: Session, complaint_id: int, current_hotel: models.Hotel) -> models.Complaint:
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    if complaint.hotel_id != current_hotel.id:
        raise HTTPException(status_code=403, detail="Not allowed to access this complaint")
    return complaint


def _append_message(db: Session, complaint: models.Complaint, text: str, is_staff: bool) -> models.Complaint:
    now = datetime.utcnow()
    complaint.messages.append(models.ComplaintMessage(message=text, is_staff=is_staff, timestamp=now))
    complaint.updated_at = now
    db.commit()
    db.refresh(complaint)
    return complaint


# ----- Predefined titles -----
@router.post(
    "/predefined",
    response_model=schemas.PredefinedComplaintOut,
    status_code=status.HTTP_201_CREATED,
)
def create_predefined_complaint(
    predefined_in: schemas.PredefinedComplaintCreate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Add a complaint title guests can pick instead of typing one. Titles are stored uppercase.
    """
    predefined = models.PredefinedComplaint(
        hotel_id=current_hotel.id,
        title=predefined_in.title.strip().upper(),
    )
    db.add(predefined)
    db.commit()
    db.refresh(predefined)
    return predefined


@router.get("/predefined/{hotel_id}", response_model=List[schemas.PredefinedComplaintOut])
def list_predefined_complaints(hotel_id: int, db: Session = Depends(get_db)):
    return (
        db.query(models.PredefinedComplaint)
        .filter(
            models.PredefinedComplaint.hotel_id == hotel_id,
            models.PredefinedComplaint.is_active == True,
        )
        .order_by(models.PredefinedComplaint.title)
        .all()
    )


@router.patch("/predefined/{predefined_id}", response_model=schemas.PredefinedComplaintOut)
def update_predefined_complaint(
    predefined_id: int,
    predefined_update: schemas.PredefinedComplaintUpdate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    predefined = _get_own_predefined(db, predefined_id, current_hotel)
    data = predefined_update.model_dump(exclude_unset=True, exclude_none=True)
    if "title" in data:
        data["title"] = data["title"].strip().upper()
    for field, value in data.items():
        setattr(predefined, field, value)
    db.commit()
    db.refresh(predefined)
    return predefined


@router.delete("/predefined/{predefined_id}")
def delete_predefined_complaint(
    predefined_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    predefined = _get_own_predefined(db, predefined_id, current_hotel)
    db.delete(predefined)
    db.commit()
    return {"detail": "Predefined complaint deleted"}


# ----- Guest side -----
@router.post("/submit", response_model=schemas.ComplaintOut, status_code=status.HTTP_201_CREATED)
def submit_complaint(
    complaint_in: schemas.ComplaintCreate,
    db: Session = Depends(get_db),
    guest: models.Guest = Depends(get_approved_guest),
):
    """
    Raise a complaint. The description becomes the first message of the thread.
    """
    now = datetime.utcnow()
    complaint = models.Complaint(
        guest_id=guest.id,
        hotel_id=guest.hotel_id,
        title=complaint_in.title.strip(),
        description=complaint_in.description,
        is_predefined=complaint_in.is_predefined,
        status=models.COMPLAINT_PENDING,
        created_at=now,
        updated_at=now,
    )
    complaint.messages.append(
        models.ComplaintMessage(message=complaint_in.description, is_staff=False, timestamp=now)
    )
    db.add(complaint)
    db.commit()
    db.refresh(complaint)
    return complaint


@router.get("/guest", response_model=List[schemas.ComplaintOut])
def list_guest_complaints(
    db: Session = Depends(get_db),
    guest: models.Guest = Depends(get_approved_guest),
):
    return (
        db.query(models.Complaint)
        .filter(models.Complaint.guest_id == guest.id)
        .order_by(models.Complaint.created_at.desc(), models.Complaint.id.desc())
        .all()
    )


# ----- Staff side -----
@router.get("/hotel", response_model=List[schemas.ComplaintOut])
def list_hotel_complaints(
    status_filter: Optional[schemas.ComplaintStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Complaints raised at the logged-in hotel, newest first.

    Parameters
    ----------
    status : str, optional
        Only return complaints in this status.
    """
    query = db.query(models.Complaint).filter(models.Complaint.hotel_id == current_hotel.id)
    if status_filter is not None:
        query = query.filter(models.Complaint.status == status_filter)
    return query.order_by(models.Complaint.created_at.desc(), models.Complaint.id.desc()).all()


@router.get("/{complaint_id}", response_model=schemas.ComplaintOut)
def get_complaint(
    complaint_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    return _get_hotel_complaint(db, complaint_id, current_hotel)


@router.patch("/{complaint_id}/status", response_model=schemas.ComplaintOut)
def update_complaint_status(
    complaint_id: int,
    status_update: schemas.ComplaintStatusUpdate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Set the complaint status. Any status can follow any other.
    """
    complaint = _get_hotel_complaint(db, complaint_id, current_hotel)
    complaint.status = status_update.status
    complaint.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(complaint)
    return complaint


@router.post("/{complaint_id}/staff-messages", response_model=schemas.ComplaintOut)
def add_staff_message(
    complaint_id: int,
    message_in: schemas.MessageCreate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    complaint = _get_hotel_complaint(db, complaint_id, current_hotel)
    return _append_message(db, complaint, message_in.message, is_staff=True)


@router.post("/{complaint_id}/messages", response_model=schemas.ComplaintOut)
def add_guest_message(
    complaint_id: int,
    message_in: schemas.MessageCreate,
    db: Session = Depends(get_db),
    guest: models.Guest = Depends(get_approved_guest),
):
    complaint = db.get(models.Complaint, complaint_id)
    if not complaint:
        raise HTTPException(status_code=404, detail="Complaint not found")
    if complaint.guest_id != guest.id:
        raise HTTPException(status_code=403, detail="Not allowed to reply to this complaint")
    return _append_message(db, complaint, message_in.message, is_staff=False)


@router.delete("/{complaint_id}")
def delete_complaint(
    complaint_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Delete a complaint. Only resolved complaints can be deleted.

    Raises
    ------
    HTTPException
        - 400 if the complaint is not resolved yet.
        - 403 if it belongs to another hotel.
        - 404 if it does not exist.
    """
    complaint = _get_hotel_complaint(db, complaint_id, current_hotel)
    if complaint.status != models.COMPLAINT_RESOLVED:
        raise HTTPException(status_code=400, detail="Only resolved complaints can be deleted")
    db.delete(complaint)
    db.commit()
    return {"detail": "Complaint deleted successfully"}
