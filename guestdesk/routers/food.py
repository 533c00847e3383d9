import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pybreaker import CircuitBreakerError
from sqlalchemy.orm import Session

from .. import schemas, models
from ..circuit_breaker import db_write_breaker
from ..deps import ensure_same_hotel, get_approved_guest, get_current_hotel, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/food", tags=["food"])

# Staff-driven order lifecycle; delivered and cancelled are final.
ORDER_TRANSITIONS = {
    models.ORDER_PENDING: {models.ORDER_CONFIRMED, models.ORDER_CANCELLED},
    models.ORDER_CONFIRMED: {models.ORDER_PREPARING, models.ORDER_CANCELLED},
    models.ORDER_PREPARING: {models.ORDER_DELIVERED},
    models.ORDER_DELIVERED: set(),
    models.ORDER_CANCELLED: set(),
}


def can_transition(current: str, new: str) -> bool:
    return current == new or new in ORDER_TRANSITIONS.get(current, set())


def _get_own_food(db: Session, food_id: int, current_hotel: models.Hotel) -> models.Food:
    food = db.get(models.Food, food_id)
    if not food:
        raise HTTPException(status_code=404, detail="Food item not found")
    if food.hotel_id != current_hotel.id:
        raise HTTPException(status_code=403, detail="Not authorized to modify this food item")
    return food


# ----- Menu -----
@router.get("/menu/{hotel_id}", response_model=List[schemas.FoodOut])
def get_menu(hotel_id: int, db: Session = Depends(get_db)):
    """
    Public menu of a hotel: available items only, sorted by name.
    """
    return (
        db.query(models.Food)
        .filter(models.Food.hotel_id == hotel_id, models.Food.is_available == True)
        .order_by(models.Food.name)
        .all()
    )


@router.get("/hotel/{hotel_id}", response_model=List[schemas.FoodOut])
def list_hotel_food(
    hotel_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Every food item of the hotel, including unavailable ones. *(Staff)*
    """
    ensure_same_hotel(hotel_id, current_hotel)
    return (
        db.query(models.Food)
        .filter(models.Food.hotel_id == hotel_id)
        .order_by(models.Food.name)
        .all()
    )


@router.post("/", response_model=schemas.FoodOut, status_code=status.HTTP_201_CREATED)
def add_food(
    food_in: schemas.FoodCreate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    food = models.Food(
        hotel_id=current_hotel.id,
        name=food_in.name.strip().upper(),
        price=food_in.price,
        image_url=food_in.image_url,
        is_available=food_in.is_available,
    )
    db.add(food)
    db.commit()
    db.refresh(food)
    return food


# ----- Orders -----
@router.post("/orders", response_model=schemas.OrderOut, status_code=status.HTTP_201_CREATED)
def place_order(
    order_in: schemas.OrderCreate,
    db: Session = Depends(get_db),
    guest: models.Guest = Depends(get_approved_guest),
):
    """
    Place a food order for the guest's room.

    Prices are read from the menu now and copied into the order, so later
    menu edits do not change the order total.

    Raises
    ------
    HTTPException
        - 400 if an item is unknown, unavailable, or from another hotel.
        - 403 if the guest is not approved yet.
        - 503 if the database write path is failing (circuit open).
    """
    total_amount = 0.0
    items = []
    for item in order_in.items:
        food = db.get(models.Food, item.food_id)
        if not food or not food.is_available or food.hotel_id != guest.hotel_id:
            raise HTTPException(status_code=400, detail=f"Food item {item.food_id} is not available")
        total_amount += food.price * item.quantity
        items.append(
            models.OrderItem(
                food_id=food.id,
                food_name=food.name,
                quantity=item.quantity,
                price=food.price,
            )
        )

    order = models.Order(
        guest_id=guest.id,
        hotel_id=guest.hotel_id,
        room_number=guest.room_number,
        total_amount=total_amount,
        status=models.ORDER_PENDING,
        items=items,
    )

    @db_write_breaker
    def _save_order():
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    try:
        _save_order()
    except CircuitBreakerError:
        db.rollback()
        raise HTTPException(
            status_code=503,
            detail="Ordering temporarily unavailable. Please try again later.",
        )

    logger.info("Order %s placed by guest %s (total %.2f)", order.id, guest.id, total_amount)
    return order


@router.get("/orders/guest", response_model=List[schemas.OrderOut])
def list_guest_orders(
    db: Session = Depends(get_db),
    guest: models.Guest = Depends(get_approved_guest),
):
    return (
        db.query(models.Order)
        .filter(models.Order.guest_id == guest.id)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


@router.get("/orders/{hotel_id}", response_model=List[schemas.OrderOut])
def list_hotel_orders(
    hotel_id: int,
    status_filter: Optional[schemas.OrderStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    ensure_same_hotel(hotel_id, current_hotel)
    query = db.query(models.Order).filter(models.Order.hotel_id == hotel_id)
    if status_filter is not None:
        query = query.filter(models.Order.status == status_filter)
    return query.order_by(models.Order.created_at.desc(), models.Order.id.desc()).all()


@router.patch("/orders/{order_id}/status", response_model=schemas.OrderOut)
def update_order_status(
    order_id: int,
    status_update: schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    """
    Move an order along ``pending → confirmed → preparing → delivered``.

    Pending and confirmed orders can also be cancelled. Setting the current
    status again changes nothing.

    Raises
    ------
    HTTPException
        - 400 for a transition the lifecycle does not allow.
        - 403 if the order belongs to another hotel.
        - 404 if the order does not exist.
    """
    order = db.get(models.Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.hotel_id != current_hotel.id:
        raise HTTPException(status_code=403, detail="Not allowed to update this order")
    if not can_transition(order.status, status_update.status):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change order status from {order.status} to {status_update.status}",
        )

    order.status = status_update.status
    db.commit()
    db.refresh(order)
    return order


# ----- Menu item maintenance -----
@router.patch("/{food_id}", response_model=schemas.FoodOut)
def update_food(
    food_id: int,
    food_update: schemas.FoodUpdate,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    food = _get_own_food(db, food_id, current_hotel)
    data = food_update.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in data:
        data["name"] = data["name"].strip().upper()
    for field, value in data.items():
        setattr(food, field, value)
    db.commit()
    db.refresh(food)
    return food


@router.delete("/{food_id}")
def delete_food(
    food_id: int,
    db: Session = Depends(get_db),
    current_hotel: models.Hotel = Depends(get_current_hotel),
):
    food = _get_own_food(db, food_id, current_hotel)
    # past orders keep their name and price snapshot
    db.query(models.OrderItem).filter(models.OrderItem.food_id == food.id).update(
        {models.OrderItem.food_id: None}, synchronize_session=False
    )
    db.delete(food)
    db.commit()
    return {"detail": "Food item deleted successfully"}
