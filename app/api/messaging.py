"""
Messaging API

Ad-hoc sends of a message template to selected or all eligible customers.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.base import get_db
from app.services.dispatch_service import DispatchService

router = APIRouter(prefix="/messaging", tags=["messaging"])


class SendRequest(BaseModel):
    campaign_name: str
    message_template: str
    customer_ids: Optional[List[int]] = None
    send_to_all: bool = False
    campaign_id: Optional[int] = None


class EmailSendRequest(SendRequest):
    subject: str


async def _dispatch(db: Session, ctx: UserContext, channel: str, body: SendRequest, subject: Optional[str] = None):
    try:
        result = await DispatchService(db).dispatch(
            user_id=ctx.user_id,
            channel=channel,
            campaign_name=body.campaign_name,
            message_template=body.message_template,
            customer_ids=body.customer_ids,
            send_to_all=body.send_to_all,
            subject=subject,
            campaign_id=body.campaign_id,
        )
    except Exception as e:
        raise_http_error(e, f"sending {channel} messages")
    return {
        "success": True,
        "message": f"{channel.capitalize()} campaign processed: {result.sent} sent, "
                   f"{result.failed} failed, {result.opted_out} opted out",
        "data": result.to_dict(),
    }


@router.post("/whatsapp")
async def send_whatsapp(body: SendRequest, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    return await _dispatch(db, ctx, "whatsapp", body)


@router.post("/email")
async def send_email(body: EmailSendRequest, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    return await _dispatch(db, ctx, "email", body, subject=body.subject)
