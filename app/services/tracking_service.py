"""
Landing page event tracking

Records page visits and button clicks. A visit can name its A/B variation
directly by id, or by test id plus variant letter.
"""
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.models.ab_test import ABTestVariation
from app.models.tracking import PageVisit, ClickEvent
from app.utils.logger import log

EVENT_TYPES = ("page_visit", "click_event")


class TrackingService:

    def __init__(self, db: Session):
        self.db = db

    def resolve_variation(
        self,
        variation_id: Optional[int] = None,
        ab_test_id: Optional[int] = None,
        variant: Optional[str] = None,
    ) -> Optional[int]:
        if ab_test_id is not None and variant:
            variation = self.db.query(ABTestVariation).filter(
                ABTestVariation.ab_test_id == ab_test_id,
                ABTestVariation.variation_name == variant.upper(),
            ).first()
            if variation:
                return variation.id
        if variation_id is not None:
            exists = self.db.query(ABTestVariation.id).filter(ABTestVariation.id == variation_id).first()
            return variation_id if exists else None
        return None

    def track(self, event: Dict) -> Dict:
        event_type = event.get("event_type")
        if event_type not in EVENT_TYPES:
            raise ValueError("Invalid event type")
        if not event.get("page_path"):
            raise ValueError("page_path is required")

        variation_id = self.resolve_variation(
            event.get("variation_id"), event.get("ab_test_id"), event.get("variant")
        )
        common = {
            "page_path": event["page_path"],
            "variation_id": variation_id,
            "session_id": event.get("session_id"),
            "utm_source": event.get("utm_source"),
            "utm_medium": event.get("utm_medium"),
            "utm_campaign": event.get("utm_campaign"),
            "user_agent": event.get("user_agent"),
        }

        if event_type == "page_visit":
            row = PageVisit(
                **common,
                utm_content=event.get("utm_content"),
                utm_term=event.get("utm_term"),
                referrer=event.get("referrer"),
            )
            message = "Page visit tracked"
        else:
            if not event.get("button_id"):
                raise ValueError("button_id is required for click events")
            row = ClickEvent(**common, button_id=event["button_id"], button_text=event.get("button_text"))
            message = "Click event tracked"

        self.db.add(row)
        self.db.commit()
        log.debug(f"{message}: {event['page_path']} variation={variation_id}")
        return {"success": True, "message": message, "id": row.id, "variation_id": variation_id}

    def variation_stats(self, variation_id: int) -> Dict[str, int]:
        visits = self.db.query(PageVisit).filter(PageVisit.variation_id == variation_id).count()
        clicks = self.db.query(ClickEvent).filter(ClickEvent.variation_id == variation_id).count()
        return {"page_visits": visits, "click_events": clicks}
