"""
Public landing-page tracking endpoint
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Literal, Optional

from app.api.deps import raise_http_error
from app.models.base import get_db
from app.services.tracking_service import TrackingService

router = APIRouter(tags=["tracking"])


class TrackEvent(BaseModel):
    event_type: Literal["page_visit", "click_event"]
    page_path: str
    button_id: Optional[str] = None
    button_text: Optional[str] = None
    variation_id: Optional[int] = None
    ab_test_id: Optional[int] = None
    variant: Optional[str] = None
    session_id: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_content: Optional[str] = None
    utm_term: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None


@router.post("/track")
async def track_event(event: TrackEvent, db: Session = Depends(get_db)):
    """Record a page visit or click; needs no login so landing pages can call it"""
    try:
        return TrackingService(db).track(event.model_dump())
    except Exception as e:
        raise_http_error(e, "tracking event")
