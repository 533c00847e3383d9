from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from .. import schemas, models, stats
from ..deps import ADMIN_COOKIE, authenticate_admin, create_admin_token, get_current_admin, get_db

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=schemas.Token)
def admin_login(
    credentials: schemas.AdminLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """
    Authenticate an admin and return a 24-hour JWT access token.

    The token is also set as an http-only ``admin_token`` cookie.

    Raises
    ------
    HTTPException
        - 401 if credentials are invalid.
    """
    admin = authenticate_admin(db, credentials.username, credentials.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    token = create_admin_token(admin)
    response.set_cookie(
        ADMIN_COOKIE,
        token,
        httponly=True,
        secure=request.url.scheme == "https",
        max_age=24 * 60 * 60,
    )
    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout")
def admin_logout(response: Response):
    response.delete_cookie(ADMIN_COOKIE)
    return {"detail": "Logged out"}


@router.get("/hotels/stats", response_model=List[schemas.HotelStats])
def get_hotel_stats(
    year: int = Query(ge=2000, le=9998),
    month: int = Query(ge=1, le=12),
    db: Session = Depends(get_db),
    _: models.Admin = Depends(get_current_admin),
):
    """
    Monthly activity of every hotel. *(Admin-only)*

    For the given month each entry reports registered guests, complaints
    (``guest_requests``), non-cancelled food orders and their revenue.
    Hotels without activity are listed with zeros.
    """
    return stats.hotel_stats(db, year, month)


@router.get("/dashboard", response_model=schemas.DashboardStats)
def get_dashboard(
    db: Session = Depends(get_db),
    _: models.Admin = Depends(get_current_admin),
):
    """
    Live overview: hotel count, today's complaints and orders, current occupancy. *(Admin-only)*
    """
    return stats.dashboard(db)
