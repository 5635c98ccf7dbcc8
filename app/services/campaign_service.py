"""
Campaign Records

CRUD over campaigns, delivery log queries and template-based campaign copy
generation.
"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.models.campaign import (
    Campaign,
    CampaignLog,
    CAMPAIGN_CHANNELS,
    CAMPAIGN_STATUSES,
    SCHEDULE_TYPES,
)
from app.services.exceptions import NotFoundError
from app.utils.helpers import safe_divide
from app.utils.logger import log

EDITABLE_FIELDS = (
    "name", "type", "status", "target_audience", "message_template",
    "schedule_type", "scheduled_time", "ai_optimization",
    "total_revenue", "total_cost", "start_date", "end_date",
)

# Allowed status moves; a completed campaign is final
STATUS_TRANSITIONS = {
    "draft": {"active", "completed"},
    "active": {"paused", "completed"},
    "paused": {"active", "completed"},
    "completed": set(),
}

# Copy library for generate_campaign_copy(), keyed by campaign type then audience
COPY_TEMPLATES = {
    "promotional": {
        "new": "🎉 Welcome! Get 20% off your first order with code WELCOME20. Limited time offer! Shop now: [LINK]",
        "returning": "🌟 We missed you! Here's 15% off your next purchase. Use code COMEBACK15: [LINK]",
        "vip": "💎 VIP Exclusive: 30% off premium collection just for you! Code: VIP30 [LINK]",
        "all": "🛍️ Flash Sale Alert! 25% off everything today only. Code: FLASH25 [LINK]",
    },
    "announcement": {
        "new": "📢 Exciting news! We've launched something special just for you. Check it out: [LINK]",
        "returning": "🔔 Important update for our valued customers. See what's new: [LINK]",
        "vip": "⭐ VIP Preview: Be the first to know about our latest launch: [LINK]",
        "all": "📰 Big announcement! Don't miss out on this exciting update: [LINK]",
    },
    "onboarding": {
        "new": "👋 Welcome aboard! Here's everything you need to get started: [LINK]",
        "returning": "🔄 Welcome back! Let's pick up where you left off: [LINK]",
        "vip": "🎯 VIP Onboarding: Your premium experience starts here: [LINK]",
        "all": "🚀 Let's get you set up! Your journey begins now: [LINK]",
    },
    "survey": {
        "new": "💭 Quick question: How was your first experience with us? Share feedback: [LINK]",
        "returning": "🗣️ Your opinion matters! Quick 2-minute survey for a chance to win: [LINK]",
        "vip": "👑 VIP Feedback: Help us serve you better. Exclusive rewards await: [LINK]",
        "all": "📝 We value your input! Share your thoughts and get rewarded: [LINK]",
    },
}

COPY_NAMES = {
    "promotional": {"new": "New Customer Welcome Offer", "returning": "Comeback Campaign", "vip": "VIP Exclusive Sale", "all": "Flash Sale Blast"},
    "announcement": {"new": "New Customer Announcement", "returning": "Customer Update", "vip": "VIP Preview", "all": "Major Announcement"},
    "onboarding": {"new": "New User Onboarding", "returning": "Return Journey", "vip": "VIP Onboarding", "all": "User Setup Guide"},
    "survey": {"new": "First Experience Survey", "returning": "Customer Feedback", "vip": "VIP Opinion Poll", "all": "Customer Survey"},
}

BEST_PRACTICES = [
    "Keep messages personal and engaging",
    "Include clear call-to-action",
    "Test different variations",
    "Use emojis appropriately",
    "Personalize with customer names when possible",
]


def _validate(data: Dict) -> None:
    if "type" in data and data["type"] not in CAMPAIGN_CHANNELS:
        raise ValueError(f"type must be one of {', '.join(CAMPAIGN_CHANNELS)}")
    if "status" in data and data["status"] not in CAMPAIGN_STATUSES:
        raise ValueError(f"status must be one of {', '.join(CAMPAIGN_STATUSES)}")
    if "schedule_type" in data and data["schedule_type"] not in SCHEDULE_TYPES:
        raise ValueError(f"schedule_type must be one of {', '.join(SCHEDULE_TYPES)}")
    if data.get("schedule_type") == "scheduled" and not data.get("scheduled_time"):
        raise ValueError("scheduled_time is required for scheduled campaigns")
    for field in ("total_revenue", "total_cost"):
        value = data.get(field)
        if value is not None and value < 0:
            raise ValueError(f"{field} cannot be negative")


def calculate_roi(total_revenue: float, total_cost: float) -> float:
    """Return on investment in percent; 0 when there is no cost"""
    if not total_cost:
        return 0.0
    return round(safe_divide(total_revenue - total_cost, total_cost) * 100, 2)


def generate_campaign_copy(campaign_type: str, target_audience: str) -> Dict:
    """
    Draft a campaign name, message and variations from the copy library

    Unknown type/audience combinations fall back to a generic message.
    """
    if not campaign_type or not target_audience:
        raise ValueError("Campaign type and target audience are required")

    name = COPY_NAMES.get(campaign_type, {}).get(target_audience) or f"{campaign_type} Campaign"
    message = COPY_TEMPLATES.get(campaign_type, {}).get(target_audience) or (
        f"Hi! We have exciting {campaign_type} news for our {target_audience} customers. Learn more: [LINK]"
    )

    return {
        "name": name,
        "message_template": message,
        "variations": [
            message,
            message.replace("Hi!", "Hello!").replace("🎉", "✨"),
            message.replace("[LINK]", "tap here: [LINK]"),
        ],
        "best_practices": BEST_PRACTICES,
        "estimated_engagement": {
            "open_rate": "68%",
            "response_rate": "18%",
            "click_rate": "12%",
        },
    }


class CampaignService:
    """Ownership-scoped campaign CRUD"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: int):
        return self.db.query(Campaign).filter(Campaign.user_id == user_id)

    def create(self, user_id: int, data: Dict) -> Campaign:
        if not data.get("name"):
            raise ValueError("Campaign name is required")
        if not data.get("message_template"):
            raise ValueError("Message template is required")
        data = {"type": "whatsapp", "schedule_type": "now", "status": "draft", **data}
        _validate(data)

        campaign = Campaign(
            user_id=user_id,
            **{k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None},
        )
        campaign.roi = calculate_roi(campaign.total_revenue or 0.0, campaign.total_cost or 0.0)
        self.db.add(campaign)
        self.db.commit()
        self.db.refresh(campaign)
        log.info(f"Created campaign {campaign.id} '{campaign.name}' for user {user_id}")
        return campaign

    def list(self, user_id: int, status: Optional[str] = None) -> List[Campaign]:
        query = self._query(user_id)
        if status:
            query = query.filter(Campaign.status == status)
        return query.order_by(desc(Campaign.created_at), desc(Campaign.id)).all()

    def get(self, user_id: int, campaign_id: int) -> Campaign:
        campaign = self._query(user_id).filter(Campaign.id == campaign_id).first()
        if not campaign:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    def update(self, user_id: int, campaign_id: int, data: Dict) -> Campaign:
        campaign = self.get(user_id, campaign_id)
        merged = {
            "schedule_type": campaign.schedule_type,
            "scheduled_time": campaign.scheduled_time,
            **data,
        }
        _validate(merged)

        new_status = data.get("status")
        if new_status and new_status != campaign.status:
            self.set_status(campaign, new_status)

        for key, value in data.items():
            if key in EDITABLE_FIELDS and key != "status":
                setattr(campaign, key, value)
        campaign.roi = calculate_roi(campaign.total_revenue or 0.0, campaign.total_cost or 0.0)
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def set_status(self, campaign: Campaign, status: str) -> None:
        """Apply a status move, stamping start/end dates. Caller commits."""
        if status not in STATUS_TRANSITIONS.get(campaign.status, set()):
            raise ValueError(f"Cannot move campaign from {campaign.status} to {status}")
        campaign.status = status
        if status == "active" and not campaign.start_date:
            campaign.start_date = datetime.utcnow()
        if status == "completed":
            campaign.end_date = datetime.utcnow()

    def delete(self, user_id: int, campaign_id: int) -> None:
        campaign = self.get(user_id, campaign_id)
        self.db.delete(campaign)
        self.db.commit()
        log.info(f"Deleted campaign {campaign_id} for user {user_id}")

    def get_logs(
        self,
        user_id: int,
        campaign_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 200,
    ) -> List[CampaignLog]:
        query = self.db.query(CampaignLog).filter(CampaignLog.user_id == user_id)
        if campaign_id is not None:
            self.get(user_id, campaign_id)
            query = query.filter(CampaignLog.campaign_id == campaign_id)
        if status:
            query = query.filter(CampaignLog.status == status)
        return query.order_by(desc(CampaignLog.id)).limit(limit).all()

    def due_scheduled_campaigns(self, now: Optional[datetime] = None) -> List[Campaign]:
        """Active scheduled campaigns whose send time has passed (all users)"""
        now = now or datetime.utcnow()
        return self.db.query(Campaign).filter(
            Campaign.schedule_type == "scheduled",
            Campaign.status == "active",
            Campaign.scheduled_time <= now,
        ).all()
