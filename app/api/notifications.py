from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Dict, List

from app.database import get_db
from app.api.dependencies import get_notifier
from app.models import PriceChangeNotification
from app.schemas import NotificationResponse

router = APIRouter()


@router.get("/notifications", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(PriceChangeNotification)
    if unread_only:
        query = query.filter(PriceChangeNotification.is_read == False)
    return (
        query.order_by(
            PriceChangeNotification.created_at.desc(),
            PriceChangeNotification.id.desc(),
        )
        .limit(limit)
        .all()
    )


@router.post("/notifications/read-all")
async def mark_all_read(db: Session = Depends(get_db)) -> Dict:
    updated = (
        db.query(PriceChangeNotification)
        .filter(PriceChangeNotification.is_read == False)
        .update({PriceChangeNotification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return {"success": True, "updated": updated}


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(notification_id: int, db: Session = Depends(get_db)):
    notification = db.query(PriceChangeNotification).filter(
        PriceChangeNotification.id == notification_id
    ).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.get("/notifications/push-history")
async def push_history(limit: int = 50, notifier=Depends(get_notifier)) -> List[Dict]:
    """Recent ntfy pushes from this process."""
    return notifier.get_history(limit=limit)
