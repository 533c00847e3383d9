from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime, timezone


GuestStatus = Literal["pending", "approved", "rejected", "checked-out"]
ComplaintStatus = Literal["pending", "in-progress", "resolved"]
OrderStatus = Literal["pending", "confirmed", "preparing", "delivered", "cancelled"]


def to_naive_utc(value: datetime) -> datetime:
    # everything is stored as naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ----- Hotels -----
class RoomRange(BaseModel):
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def check_order(self):
        if self.start >= self.end:
            raise ValueError("room_range.start must be lower than room_range.end")
        return self


class HotelSignup(BaseModel):
    hotel_name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    address: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)
    max_rooms: Optional[int] = Field(default=None, gt=0)
    room_range: Optional[RoomRange] = None


class HotelLogin(BaseModel):
    email: EmailStr
    password: str


class HotelOut(BaseModel):
    id: int
    hotel_name: str
    email: EmailStr
    address: str
    phone_number: str
    max_rooms: Optional[int] = None
    room_range: Optional[RoomRange] = None

    model_config = ConfigDict(from_attributes=True)


class HotelPublic(BaseModel):
    id: int
    hotel_name: str

    model_config = ConfigDict(from_attributes=True)


class HotelSettings(BaseModel):
    max_rooms: Optional[int] = None
    room_range: Optional[RoomRange] = None

    model_config = ConfigDict(from_attributes=True)


class HotelSettingsUpdate(BaseModel):
    max_rooms: Optional[int] = Field(default=None, gt=0)
    room_range: Optional[RoomRange] = None


# ----- Guests -----
class GuestRegistration(BaseModel):
    name: str = Field(min_length=1)
    room_number: str = Field(min_length=1)
    mobile_number: str = Field(min_length=1)
    check_out_date: datetime

    @field_validator("name", "room_number", "mobile_number")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("check_out_date")
    @classmethod
    def normalize_check_out(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class GuestOut(BaseModel):
    id: int
    hotel_id: int
    name: str
    room_number: str
    mobile_number: str
    check_out_date: datetime
    status: GuestStatus
    rejection_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GuestStatusOut(BaseModel):
    id: int
    name: str
    status: GuestStatus
    rejection_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RegistrationResult(BaseModel):
    message: str
    token: str
    guest: GuestOut


class GuestRejection(BaseModel):
    reason: Optional[str] = None


class GuestDecision(BaseModel):
    message: str
    guest: GuestOut


# ----- Complaints -----
class PredefinedComplaintCreate(BaseModel):
    title: str = Field(min_length=1)


class PredefinedComplaintUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    is_active: Optional[bool] = None


class PredefinedComplaintOut(BaseModel):
    id: int
    hotel_id: int
    title: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ComplaintCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    is_predefined: bool = False


class ComplaintStatusUpdate(BaseModel):
    status: ComplaintStatus


class MessageCreate(BaseModel):
    message: str = Field(min_length=1)


class MessageOut(BaseModel):
    id: int
    message: str
    is_staff: bool
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ComplaintOut(BaseModel):
    id: int
    guest_id: int
    hotel_id: int
    title: str
    description: str
    status: ComplaintStatus
    is_predefined: bool
    created_at: datetime
    updated_at: datetime
    messages: List[MessageOut] = []

    model_config = ConfigDict(from_attributes=True)


# ----- Food -----
class FoodCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    image_url: str = Field(min_length=1)
    is_available: bool = True


class FoodUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, gt=0)
    image_url: Optional[str] = Field(default=None, min_length=1)
    is_available: Optional[bool] = None


class FoodOut(BaseModel):
    id: int
    hotel_id: int
    name: str
    price: float
    image_url: str
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


# ----- Orders -----
class OrderItemIn(BaseModel):
    food_id: int
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    items: List[OrderItemIn] = Field(min_length=1)


class OrderItemOut(BaseModel):
    food_id: Optional[int] = None
    food_name: str
    quantity: int
    price: float

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    guest_id: int
    hotel_id: int
    room_number: str
    items: List[OrderItemOut]
    total_amount: float
    status: OrderStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# ----- Admin -----
class AdminLogin(BaseModel):
    username: str
    password: str


class HotelStats(BaseModel):
    id: int
    name: str
    total_guests: int
    guest_requests: int
    food_orders: int
    revenue: float
    status: str = "active"


class OccupancyStats(BaseModel):
    hotel_id: int
    hotel_name: str
    total_rooms: int
    occupied_rooms: int


class DashboardStats(BaseModel):
    total_hotels: int
    today_complaints: int
    today_orders: int
    occupancy: List[OccupancyStats]


# ----- Auth -----
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class StaffToken(Token):
    hotel: HotelOut


class TokenData(BaseModel):
    subject: Optional[int] = None
    role: Optional[str] = None
