"""
Campaign API

Campaign CRUD, template-based copy generation, sending a stored campaign
and its delivery logs.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.base import get_db
from app.services.campaign_service import CampaignService, generate_campaign_copy
from app.services.dispatch_service import DispatchService
from app.utils.helpers import row_to_dict

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


class CampaignFields(BaseModel):
    type: Optional[str] = None
    status: Optional[str] = None
    target_audience: Optional[str] = None
    schedule_type: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    ai_optimization: Optional[bool] = None
    total_revenue: Optional[float] = None
    total_cost: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class CampaignCreate(CampaignFields):
    name: str
    message_template: str


class CampaignUpdate(CampaignFields):
    name: Optional[str] = None
    message_template: Optional[str] = None


class GenerateRequest(BaseModel):
    campaign_type: str
    target_audience: str


class SendRequest(BaseModel):
    customer_ids: Optional[List[int]] = None
    subject: Optional[str] = None


@router.get("")
async def list_campaigns(
    status: Optional[str] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    campaigns = CampaignService(db).list(ctx.user_id, status=status)
    return {"success": True, "data": [row_to_dict(c) for c in campaigns]}


@router.post("", status_code=201)
async def create_campaign(body: CampaignCreate, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        campaign = CampaignService(db).create(ctx.user_id, body.model_dump(exclude_none=True))
    except Exception as e:
        raise_http_error(e, "creating campaign")
    return {"success": True, "data": row_to_dict(campaign)}


@router.post("/generate")
async def generate_campaign(body: GenerateRequest, ctx: UserContext = Depends(require_user)):
    """Draft a campaign name, message and variations from the copy library"""
    try:
        return {"success": True, "data": generate_campaign_copy(body.campaign_type, body.target_audience)}
    except Exception as e:
        raise_http_error(e, "generating campaign")


@router.get("/{campaign_id}")
async def get_campaign(campaign_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        campaign = CampaignService(db).get(ctx.user_id, campaign_id)
    except Exception as e:
        raise_http_error(e, "loading campaign")
    return {"success": True, "data": row_to_dict(campaign)}


@router.put("/{campaign_id}")
async def update_campaign(
    campaign_id: int,
    body: CampaignUpdate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        campaign = CampaignService(db).update(ctx.user_id, campaign_id, body.model_dump(exclude_unset=True))
    except Exception as e:
        raise_http_error(e, "updating campaign")
    return {"success": True, "data": row_to_dict(campaign)}


@router.delete("/{campaign_id}")
async def delete_campaign(campaign_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        CampaignService(db).delete(ctx.user_id, campaign_id)
    except Exception as e:
        raise_http_error(e, "deleting campaign")
    return {"success": True, "message": f"Campaign {campaign_id} deleted"}


@router.post("/{campaign_id}/send")
async def send_campaign(
    campaign_id: int,
    body: Optional[SendRequest] = None,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    """
    Send the campaign's template on its channel

    Without customer_ids every eligible customer is targeted.
    """
    body = body or SendRequest()
    try:
        campaign = CampaignService(db).get(ctx.user_id, campaign_id)
        result = await DispatchService(db).dispatch_campaign(
            ctx.user_id, campaign, customer_ids=body.customer_ids, subject=body.subject
        )
    except Exception as e:
        raise_http_error(e, "sending campaign")
    return {"success": True, "data": result.to_dict()}


@router.get("/{campaign_id}/logs")
async def get_campaign_logs(
    campaign_id: int,
    status: Optional[str] = Query(None, description="sent, failed, pending or opt_out"),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        logs = CampaignService(db).get_logs(ctx.user_id, campaign_id=campaign_id, status=status, limit=limit)
    except Exception as e:
        raise_http_error(e, "loading campaign logs")
    return {"success": True, "data": [row_to_dict(entry) for entry in logs]}
