"""
Cross-hotel rollups for the admin console.

Everything is recomputed from the tables on every call.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models
from .exceptions import ValidationFailed


def month_bounds(year: int, month: int) -> tuple:
    """Return ``[start, end)`` of a calendar month."""
    if not 1 <= month <= 12:
        raise ValidationFailed("Month must be between 1 and 12")
    if year >= datetime.max.year:
        raise ValidationFailed(f"Year must be below {datetime.max.year}")
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def hotel_stats(db: Session, year: int, month: int) -> list:
    """
    Per-hotel activity for one month.

    ``total_guests`` counts registrations, ``guest_requests`` complaints,
    ``food_orders`` and ``revenue`` cover orders that were not cancelled.
    """
    start, end = month_bounds(year, month)
    results = []

    for hotel in db.query(models.Hotel).order_by(models.Hotel.id).all():
        total_guests = db.query(func.count(models.Guest.id)).filter(
            models.Guest.hotel_id == hotel.id,
            models.Guest.created_at >= start,
            models.Guest.created_at < end,
        ).scalar()

        guest_requests = db.query(func.count(models.Complaint.id)).filter(
            models.Complaint.hotel_id == hotel.id,
            models.Complaint.created_at >= start,
            models.Complaint.created_at < end,
        ).scalar()

        food_orders, revenue = db.query(
            func.count(models.Order.id),
            func.coalesce(func.sum(models.Order.total_amount), 0),
        ).filter(
            models.Order.hotel_id == hotel.id,
            models.Order.status != models.ORDER_CANCELLED,
            models.Order.created_at >= start,
            models.Order.created_at < end,
        ).one()

        results.append(
            {
                "id": hotel.id,
                "name": hotel.hotel_name,
                "total_guests": total_guests or 0,
                "guest_requests": guest_requests or 0,
                "food_orders": food_orders or 0,
                "revenue": float(revenue or 0),
                "status": "active",
            }
        )

    return results


def dashboard(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    total_hotels = db.query(func.count(models.Hotel.id)).scalar()
    today_complaints = db.query(func.count(models.Complaint.id)).filter(
        models.Complaint.created_at >= today
    ).scalar()
    today_orders = db.query(func.count(models.Order.id)).filter(
        models.Order.created_at >= today
    ).scalar()

    occupancy = []
    for hotel in db.query(models.Hotel).order_by(models.Hotel.id).all():
        occupied_rooms = db.query(func.count(models.Guest.id)).filter(
            models.Guest.hotel_id == hotel.id,
            models.Guest.status == models.GUEST_APPROVED,
            models.Guest.check_out_date > now,
        ).scalar()
        occupancy.append(
            {
                "hotel_id": hotel.id,
                "hotel_name": hotel.hotel_name,
                "total_rooms": hotel.total_rooms,
                "occupied_rooms": occupied_rooms or 0,
            }
        )

    return {
        "total_hotels": total_hotels or 0,
        "today_complaints": today_complaints or 0,
        "today_orders": today_orders or 0,
        "occupancy": occupancy,
    }
