"""
LLM-powered assistant endpoints
Marketing chat over the caller's metrics and message variant drafting
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.base import get_db
from app.models.campaign import ProductDetail
from app.services.campaign_service import CampaignService
from app.services.chat_data_service import ChatDataService
from app.services.llm_service import LLMService

router = APIRouter(prefix="/llm", tags=["llm"])

llm_service = LLMService()


class ChatRequest(BaseModel):
    message: str


class VariantsRequest(BaseModel):
    campaign_id: int
    product_id: Optional[int] = None
    count: int = 3


@router.get("/status")
async def get_llm_status():
    """Check if LLM service is available"""
    return {
        "available": llm_service.is_available(),
        "message": "LLM service is ready" if llm_service.is_available() else "LLM service not configured, using canned answers"
    }


@router.post("/chat")
async def chat(request: ChatRequest, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    """
    Answer a marketing question with the caller's metrics as context.

    Example: {"message": "How can I improve my ROI?"}
    """
    try:
        context = ChatDataService(db).get_context(ctx.user_id)
        answer = llm_service.answer_question(request.message, context)
    except Exception as e:
        raise_http_error(e, "in chat")

    return {
        "message": request.message,
        "response": answer["response"],
        "source": answer["source"],
        "context": {
            "has_data": context["total_customers"] > 0,
            "metrics": {
                "customers": context["total_customers"],
                "revenue": context["total_revenue"],
                "roi": context["roi"],
            },
        },
    }


@router.post("/variants")
async def generate_variants(request: VariantsRequest, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    """Draft message variants for a campaign, optionally using a stored product's details"""
    if not llm_service.is_available():
        raise HTTPException(
            status_code=503,
            detail="LLM service not available. Configure ANTHROPIC_API_KEY in .env"
        )
    if not 1 <= request.count <= 5:
        raise HTTPException(status_code=400, detail="count must be between 1 and 5")

    try:
        campaign = CampaignService(db).get(ctx.user_id, request.campaign_id)
        product = None
        if request.product_id is not None:
            product = db.query(ProductDetail).filter(
                ProductDetail.id == request.product_id, ProductDetail.user_id == ctx.user_id
            ).first()
            if not product:
                raise HTTPException(status_code=404, detail=f"Product {request.product_id} not found")
    except Exception as e:
        raise_http_error(e, "loading campaign for variants")

    variants = llm_service.generate_variants(
        {"name": campaign.name, "target_audience": campaign.target_audience},
        {
            "name": product.name, "description": product.description, "price": product.price,
            "features": product.features, "benefits": product.benefits, "offer": product.offer,
        } if product else None,
        count=request.count,
    )
    if variants is None:
        raise HTTPException(status_code=502, detail="Variant generation failed")
    return {"success": True, "data": {"variants": variants}}
