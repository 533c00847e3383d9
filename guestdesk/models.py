from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Float, Index, text
from sqlalchemy.orm import relationship
from .database import Base


# Guest statuses
GUEST_PENDING = "pending"
GUEST_APPROVED = "approved"
GUEST_REJECTED = "rejected"
GUEST_CHECKED_OUT = "checked-out"

# Complaint statuses
COMPLAINT_PENDING = "pending"
COMPLAINT_IN_PROGRESS = "in-progress"
COMPLAINT_RESOLVED = "resolved"

# Order statuses
ORDER_PENDING = "pending"
ORDER_CONFIRMED = "confirmed"
ORDER_PREPARING = "preparing"
ORDER_DELIVERED = "delivered"
ORDER_CANCELLED = "cancelled"


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    hotel_name = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    address = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    max_rooms = Column(Integer, nullable=True)
    room_range_start = Column(Integer, nullable=True)
    room_range_end = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    guests = relationship("Guest", back_populates="hotel")
    foods = relationship("Food", back_populates="hotel")

    @property
    def room_range(self):
        if self.room_range_start is None or self.room_range_end is None:
            return None
        return {"start": self.room_range_start, "end": self.room_range_end}

    @property
    def total_rooms(self) -> int:
        if self.room_range is not None:
            return self.room_range_end - self.room_range_start + 1
        return self.max_rooms or 0


class Guest(Base):
    __tablename__ = "guests"
    __table_args__ = (
        Index("ix_guests_hotel_status", "hotel_id", "status"),
        # At most one approved occupant per room; expired stays are moved to
        # checked-out before a new approval for the same room.
        Index(
            "uq_guests_approved_room",
            "hotel_id",
            "room_number",
            unique=True,
            sqlite_where=text("status = 'approved'"),
            postgresql_where=text("status = 'approved'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    name = Column(String, nullable=False)
    room_number = Column(String, nullable=False)
    mobile_number = Column(String, nullable=False)
    check_out_date = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=GUEST_PENDING)  # pending, approved, rejected, checked-out
    rejection_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    hotel = relationship("Hotel", back_populates="guests")


class PredefinedComplaint(Base):
    __tablename__ = "predefined_complaints"

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String, nullable=False, default=COMPLAINT_PENDING)  # pending, in-progress, resolved
    is_predefined = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    messages = relationship(
        "ComplaintMessage",
        back_populates="complaint",
        order_by="ComplaintMessage.id",
        cascade="all, delete-orphan",
    )


class ComplaintMessage(Base):
    __tablename__ = "complaint_messages"

    id = Column(Integer, primary_key=True, index=True)
    complaint_id = Column(Integer, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    is_staff = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    complaint = relationship("Complaint", back_populates="messages")


class Food(Base):
    __tablename__ = "foods"
    __table_args__ = (Index("ix_foods_hotel_available", "hotel_id", "is_available"),)

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    image_url = Column(String, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    hotel = relationship("Hotel", back_populates="foods")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_hotel_status", "hotel_id", "status"),)

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=False)
    room_number = Column(String, nullable=False)
    total_amount = Column(Float, nullable=False)
    status = Column(String, nullable=False, default=ORDER_PENDING)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # price and name are copied from the menu when the order is placed
    food_id = Column(Integer, ForeignKey("foods.id", ondelete="SET NULL"), nullable=True)
    food_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
