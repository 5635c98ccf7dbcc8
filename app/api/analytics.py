"""
Analytics API

Cached dashboard summary and keyword sentiment scoring.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.base import get_db
from app.services.analytics_service import AnalyticsService
from app.services.sentiment_service import analyze_sentiment

router = APIRouter(prefix="/analytics", tags=["analytics"])


class SentimentRequest(BaseModel):
    text: str


@router.get("/summary")
async def get_summary(db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    """
    Customers, revenue, cost, ROI, average CTR and sentiment buckets

    Served from a per-user cache for up to five minutes.
    """
    try:
        snapshot = AnalyticsService(db).get_analytics(ctx.user_id)
    except Exception as e:
        raise_http_error(e, "computing analytics")
    return {"success": True, "data": snapshot.to_dict()}


@router.post("/sentiment")
async def score_sentiment(body: SentimentRequest, ctx: UserContext = Depends(require_user)):
    try:
        return {"success": True, "data": analyze_sentiment(body.text)}
    except Exception as e:
        raise_http_error(e, "analyzing sentiment")
