"""Database models for the Campaign Dashboard"""

from app.models.user import User, UserSession

from app.models.customer import Customer

from app.models.campaign import (
    Campaign,
    CampaignLog,
    ProductDetail
)

from app.models.ab_test import (
    ABTest,
    ABTestVariation,
    ABTestResult
)

from app.models.analytics import AnalyticsCache

from app.models.tracking import (
    PageVisit,
    ClickEvent
)
