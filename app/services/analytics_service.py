"""
Analytics Aggregator

Summary counts over a user's customers and campaigns, cached per user in
the analytics_cache table. The cache is read-through with a TTL and is
never invalidated on write; a summary can be stale for up to the TTL.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.analytics import AnalyticsCache
from app.models.campaign import Campaign
from app.models.customer import Customer
from app.services.campaign_service import calculate_roi
from app.utils.logger import log

# Bump when AnalyticsSnapshot changes shape; older cached payloads are ignored
SNAPSHOT_VERSION = 2


def cache_key(user_id: int) -> str:
    return f"analytics_{user_id}"


def customer_sentiment(customer: Any) -> str:
    """Bucket a customer by engagement signals: complaints win over positives"""
    if customer.complain:
        return "negative"
    if (customer.campaigns_accepted or 0) > 0 or customer.response:
        return "positive"
    return "neutral"


@dataclass
class AnalyticsSnapshot:
    total_customers: int = 0
    total_revenue: float = 0.0
    total_cost: float = 0.0
    roi: float = 0.0
    avg_ctr: float = 0.0
    total_campaigns: int = 0
    active_campaigns: int = 0
    total_sent: int = 0
    opted_out_customers: int = 0
    sentiment: Dict[str, int] = field(default_factory=lambda: {"positive": 0, "neutral": 0, "negative": 0})
    computed_at: Optional[str] = None
    version: int = SNAPSHOT_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["AnalyticsSnapshot"]:
        """Rebuild a cached snapshot; None when the payload is from another version"""
        if not isinstance(data, dict) or data.get("version") != SNAPSHOT_VERSION:
            return None
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class AnalyticsService:
    """Per-user analytics summary with a database-backed TTL cache"""

    def __init__(self, db: Session):
        self.db = db
        self.ttl = timedelta(seconds=get_settings().analytics_cache_ttl_seconds)

    def get_analytics(self, user_id: int, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        now = now or datetime.utcnow()

        cached = self._read_cache(user_id, now)
        if cached is not None:
            return cached

        snapshot = self.compute(user_id, now)
        self._write_cache(user_id, snapshot, now)
        return snapshot

    def compute(self, user_id: int, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        now = now or datetime.utcnow()
        customers = self.db.query(Customer).filter(Customer.user_id == user_id).all()
        campaigns = self.db.query(Campaign).filter(Campaign.user_id == user_id).all()

        sentiment = {"positive": 0, "neutral": 0, "negative": 0}
        for customer in customers:
            sentiment[customer_sentiment(customer)] += 1

        total_revenue = sum(c.total_revenue or 0.0 for c in campaigns)
        total_cost = sum(c.total_cost or 0.0 for c in campaigns)
        ctrs = [c.ctr for c in campaigns if c.ctr is not None]

        snapshot = AnalyticsSnapshot(
            total_customers=len(customers),
            total_revenue=round(total_revenue, 2),
            total_cost=round(total_cost, 2),
            roi=calculate_roi(total_revenue, total_cost),
            avg_ctr=round(sum(ctrs) / len(ctrs), 2) if ctrs else 0.0,
            total_campaigns=len(campaigns),
            active_campaigns=sum(1 for c in campaigns if c.status == "active"),
            total_sent=sum(c.sent_count or 0 for c in campaigns),
            opted_out_customers=sum(1 for c in customers if c.opt_out),
            sentiment=sentiment,
            computed_at=now.isoformat(),
        )
        log.info(f"Computed analytics for user {user_id}: {snapshot.total_customers} customers, "
                 f"{snapshot.total_campaigns} campaigns")
        return snapshot

    def _read_cache(self, user_id: int, now: datetime) -> Optional[AnalyticsSnapshot]:
        try:
            row = self.db.query(AnalyticsCache).filter(
                AnalyticsCache.user_id == user_id,
                AnalyticsCache.cache_key == cache_key(user_id),
                AnalyticsCache.expires_at > now,
            ).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.warning(f"Analytics cache read failed for user {user_id}, recomputing: {e}")
            return None
        if row is None:
            return None
        return AnalyticsSnapshot.from_dict(row.data)

    def _write_cache(self, user_id: int, snapshot: AnalyticsSnapshot, now: datetime) -> None:
        try:
            row = self.db.query(AnalyticsCache).filter(
                AnalyticsCache.user_id == user_id,
                AnalyticsCache.cache_key == cache_key(user_id),
            ).first()
            if row is None:
                row = AnalyticsCache(user_id=user_id, cache_key=cache_key(user_id))
                self.db.add(row)
            row.data = snapshot.to_dict()
            row.expires_at = now + self.ttl
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to cache analytics for user {user_id}: {e}")

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired cache rows for all users. Returns count removed."""
        now = now or datetime.utcnow()
        count = self.db.query(AnalyticsCache).filter(AnalyticsCache.expires_at <= now).delete()
        self.db.commit()
        return count
