"""
Message Dispatcher

Personalizes a template for each target customer and hands it to the
channel transport, one customer at a time. Every attempt produces exactly
one campaign_logs row. A failure for one customer never stops the batch
and nothing is retried; a new dispatch call is the retry.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.connectors import BaseTransport, get_transport
from app.models.campaign import Campaign, CampaignLog, CAMPAIGN_CHANNELS
from app.models.customer import Customer
from app.services.campaign_service import CampaignService
from app.services.exceptions import NoEligibleCustomersError
from app.utils.logger import log
from app.utils.templating import (
    personalize_message,
    whatsapp_body,
    email_text_body,
    email_html_body,
    format_phone_e164,
)


@dataclass
class DispatchResult:
    """Aggregate tally of one dispatch call"""
    total: int = 0
    sent: int = 0
    failed: int = 0
    opted_out: int = 0
    details: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DispatchService:
    """
    Sends a campaign message to a list of customers over one channel

    Transports are injectable per channel so callers (and tests) can swap
    the provider without touching dispatch logic.
    """

    def __init__(self, db: Session, transports: Optional[Dict[str, BaseTransport]] = None):
        self.db = db
        self.settings = get_settings()
        self._transports = dict(transports or {})

    def _transport(self, channel: str) -> BaseTransport:
        if channel not in self._transports:
            self._transports[channel] = get_transport(channel)
        return self._transports[channel]

    def resolve_targets(
        self,
        user_id: int,
        customer_ids: Optional[List[int]] = None,
        send_to_all: bool = False,
    ) -> List[Customer]:
        """
        Customers a dispatch should walk through.

        Explicit ids keep their opted-out members so the skip is recorded;
        "all" means every eligible (not opted out) customer of the user.
        """
        query = self.db.query(Customer).filter(Customer.user_id == user_id)
        if customer_ids and not send_to_all:
            query = query.filter(Customer.id.in_(customer_ids))
        else:
            query = query.filter(Customer.opt_out == False)  # noqa: E712
        return query.order_by(Customer.id).all()

    async def dispatch(
        self,
        user_id: int,
        channel: str,
        campaign_name: str,
        message_template: str,
        customer_ids: Optional[List[int]] = None,
        send_to_all: bool = False,
        subject: Optional[str] = None,
        campaign_id: Optional[int] = None,
    ) -> DispatchResult:
        if channel not in CAMPAIGN_CHANNELS:
            raise ValueError(f"Unsupported channel: {channel}")
        if not message_template:
            raise ValueError("Message template is required")
        if channel == "email" and not subject:
            raise ValueError("Subject is required for email campaigns")
        if campaign_id is not None:
            # Logs and counters may only point at the caller's own campaign
            CampaignService(self.db).get(user_id, campaign_id)

        customers = self.resolve_targets(user_id, customer_ids, send_to_all)
        if not customers:
            raise NoEligibleCustomersError("No eligible customers found (may have opted out)")

        transport = self._transport(channel)
        result = DispatchResult(total=len(customers))
        log.info(f"Dispatching '{campaign_name}' via {channel} to {len(customers)} customers")

        for customer in customers:
            await self._dispatch_one(
                customer, user_id, channel, campaign_name, message_template,
                subject, campaign_id, transport, result,
            )

        if campaign_id is not None and result.sent:
            self._bump_campaign_counters(user_id, campaign_id, result.sent)

        log.info(
            f"Dispatch '{campaign_name}' done: {result.sent} sent, "
            f"{result.failed} failed, {result.opted_out} opted out"
        )
        return result

    async def dispatch_campaign(
        self,
        user_id: int,
        campaign: Campaign,
        customer_ids: Optional[List[int]] = None,
        subject: Optional[str] = None,
    ) -> DispatchResult:
        """Send a stored campaign's template on its own channel"""
        return await self.dispatch(
            user_id=user_id,
            channel=campaign.type,
            campaign_name=campaign.name,
            message_template=campaign.message_template,
            customer_ids=customer_ids,
            send_to_all=not customer_ids,
            subject=subject or campaign.name,
            campaign_id=campaign.id,
        )

    async def _dispatch_one(
        self,
        customer: Customer,
        user_id: int,
        channel: str,
        campaign_name: str,
        message_template: str,
        subject: Optional[str],
        campaign_id: Optional[int],
        transport: BaseTransport,
        result: DispatchResult,
    ) -> None:
        company = self.settings.company_name
        message = personalize_message(message_template, customer, company)
        recipient = customer.phone if channel == "whatsapp" else customer.email
        detail = {"customer_id": customer.id, "customer": customer.full_name, "recipient": recipient}
        delivery_log = log.bind(channel=channel, campaign=campaign_name)

        if customer.opt_out:
            result.opted_out += 1
            delivery_log.info(f"opt_out customer={customer.id}")
            self._log(user_id, campaign_id, campaign_name, customer, channel, message, "opt_out")
            result.details.append({**detail, "status": "opt_out"})
            return

        if channel == "whatsapp":
            final_message = whatsapp_body(message)
            to = format_phone_e164(customer.phone)
            body = final_message
            missing = "Customer has no phone number" if not to else None
        else:
            final_message = email_text_body(message)
            to = customer.email
            body = email_html_body(message)
            missing = "Customer has no email address" if not to else None

        if missing:
            outcome_error, delivery_id = missing, None
        else:
            try:
                sent = await transport.send(
                    to, body, personalize_message(subject, customer, company) if subject else None
                )
                outcome_error = None if sent.success else (sent.error or f"Failed to send {channel} message")
                delivery_id = sent.delivery_id
            except Exception as e:
                outcome_error, delivery_id = str(e) or type(e).__name__, None

        if outcome_error is None:
            result.sent += 1
            delivery_log.info(f"sent customer={customer.id} to={to} id={delivery_id}")
            self._log(user_id, campaign_id, campaign_name, customer, channel, final_message, "sent",
                      delivery_id=delivery_id)
            result.details.append({**detail, "status": "sent", "message_id": delivery_id})
        else:
            result.failed += 1
            delivery_log.error(f"failed customer={customer.id} to={to}: {outcome_error}")
            self._log(user_id, campaign_id, campaign_name, customer, channel, final_message, "failed",
                      error_message=outcome_error)
            result.details.append({**detail, "status": "failed", "error": outcome_error})

    def _log(
        self,
        user_id: int,
        campaign_id: Optional[int],
        campaign_name: str,
        customer: Customer,
        channel: str,
        message: str,
        status: str,
        delivery_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Append and commit one delivery log row; a logging failure does not stop the batch."""
        entry = CampaignLog(
            user_id=user_id,
            campaign_id=campaign_id,
            campaign_name=campaign_name,
            customer_id=customer.id,
            channel=channel,
            recipient_phone=customer.phone if channel == "whatsapp" else None,
            recipient_email=customer.email if channel == "email" else None,
            message_content=message,
            status=status,
            delivery_id=delivery_id,
            error_message=error_message,
            sent_at=datetime.utcnow() if status == "sent" else None,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to log campaign result for customer {customer.id}: {e}")

    def _bump_campaign_counters(self, user_id: int, campaign_id: int, sent: int) -> None:
        campaign = (
            self.db.query(Campaign)
            .filter(Campaign.id == campaign_id, Campaign.user_id == user_id)
            .first()
        )
        if not campaign:
            return
        campaign.sent_count = (campaign.sent_count or 0) + sent
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to update counters for campaign {campaign_id}: {e}")
