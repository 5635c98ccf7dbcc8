"""
Chat Data Service
Builds the business context handed to the marketing assistant
"""
from typing import Dict

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.models.customer import Customer
from app.services.analytics_service import AnalyticsService

TOP_CUSTOMER_LIMIT = 3


class ChatDataService:

    def __init__(self, db: Session):
        self.db = db

    def get_context(self, user_id: int) -> Dict:
        """Cached analytics summary plus the user's highest-spending customers"""
        snapshot = AnalyticsService(self.db).get_analytics(user_id)
        top = (
            self.db.query(Customer)
            .filter(Customer.user_id == user_id)
            .order_by(desc(Customer.total_spent), Customer.id)
            .limit(TOP_CUSTOMER_LIMIT)
            .all()
        )
        return {
            "total_customers": snapshot.total_customers,
            "total_revenue": snapshot.total_revenue,
            "roi": snapshot.roi,
            "avg_ctr": snapshot.avg_ctr,
            "sentiment": snapshot.sentiment,
            "top_customers": [
                {
                    "name": c.full_name,
                    "spent": c.total_spent or 0,
                    "location": c.location,
                    "campaigns": c.campaigns_accepted or 0,
                }
                for c in top
            ],
        }
