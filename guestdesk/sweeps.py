"""
Time-based maintenance jobs.

Each sweep takes a session and the current time, commits its own work and
returns the number of affected rows. Running a sweep twice in a row changes
nothing the second time.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)


def expire_guests(db: Session, now: Optional[datetime] = None) -> int:
    """Check out approved guests whose checkout date has passed."""
    now = now or datetime.utcnow()
    count = db.query(models.Guest).filter(
        models.Guest.status == models.GUEST_APPROVED,
        models.Guest.check_out_date < now,
    ).update(
        {models.Guest.status: models.GUEST_CHECKED_OUT, models.Guest.updated_at: now},
        synchronize_session=False,
    )
    db.commit()
    logger.info("Checked out %d expired guest records", count)
    return count


def purge_stale_complaints(
    db: Session,
    now: Optional[datetime] = None,
    retention: timedelta = timedelta(hours=24),
    purge_unresolved: bool = False,
) -> int:
    """
    Delete complaints past the retention window.

    Resolved complaints go once they have not been updated for ``retention``.
    With ``purge_unresolved`` any complaint created more than ``retention``
    ago is deleted too, whatever its status.
    """
    now = now or datetime.utcnow()
    cutoff = now - retention

    condition = and_(
        models.Complaint.status == models.COMPLAINT_RESOLVED,
        models.Complaint.updated_at < cutoff,
    )
    if purge_unresolved:
        condition = or_(condition, models.Complaint.created_at < cutoff)

    ids = [row.id for row in db.query(models.Complaint.id).filter(condition).all()]
    if not ids:
        return 0

    db.query(models.ComplaintMessage).filter(
        models.ComplaintMessage.complaint_id.in_(ids)
    ).delete(synchronize_session=False)
    count = db.query(models.Complaint).filter(
        models.Complaint.id.in_(ids)
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("Deleted %d old complaints", count)
    return count


def purge_expired_orders(
    db: Session,
    now: Optional[datetime] = None,
    hotel_id: Optional[int] = None,
) -> int:
    """Delete the orders of guests whose checkout date has passed."""
    now = now or datetime.utcnow()

    expired_guests = db.query(models.Guest.id).filter(models.Guest.check_out_date < now)
    if hotel_id is not None:
        expired_guests = expired_guests.filter(models.Guest.hotel_id == hotel_id)
    guest_ids = [row.id for row in expired_guests.all()]
    if not guest_ids:
        return 0

    order_ids = [
        row.id
        for row in db.query(models.Order.id).filter(models.Order.guest_id.in_(guest_ids)).all()
    ]
    if not order_ids:
        return 0

    db.query(models.OrderItem).filter(
        models.OrderItem.order_id.in_(order_ids)
    ).delete(synchronize_session=False)
    count = db.query(models.Order).filter(
        models.Order.id.in_(order_ids)
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("Deleted %d orders of checked-out guests", count)
    return count
