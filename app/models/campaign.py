"""
Campaign models: campaign records, delivery logs and product details
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.models.base import Base


CAMPAIGN_CHANNELS = ("whatsapp", "email")
CAMPAIGN_STATUSES = ("draft", "active", "paused", "completed")
SCHEDULE_TYPES = ("now", "scheduled")
LOG_STATUSES = ("sent", "failed", "pending", "opt_out")


class Campaign(Base):
    """Named message template bound to an audience and a schedule"""
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    type = Column(String, nullable=False, default="whatsapp")  # whatsapp, email
    status = Column(String, nullable=False, default="draft", index=True)
    target_audience = Column(String, nullable=False, default="all")
    message_template = Column(Text, nullable=False)

    # Schedule
    schedule_type = Column(String, nullable=False, default="now")  # now, scheduled
    scheduled_time = Column(DateTime, nullable=True, index=True)
    ai_optimization = Column(Boolean, default=False)

    # Aggregate counters
    audience_count = Column(Integer, default=0)
    sent_count = Column(Integer, default=0)
    opened_count = Column(Integer, default=0)
    clicked_count = Column(Integer, default=0)
    ctr = Column(Float, nullable=True)  # Percentage (0-100)

    # Financials
    total_revenue = Column(Float, default=0.0)
    total_cost = Column(Float, default=0.0)
    roi = Column(Float, nullable=True)

    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    ab_tests = relationship("ABTest", back_populates="campaign", cascade="all, delete-orphan")


class CampaignLog(Base):
    """One send attempt to one recipient. Rows are never updated."""
    __tablename__ = "campaign_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True, index=True)
    campaign_name = Column(String, nullable=False)

    # Nulled when the customer is deleted; the log stays as a historical record
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)

    channel = Column(String, nullable=False)
    recipient_phone = Column(String, nullable=True)
    recipient_email = Column(String, nullable=True)
    message_content = Column(Text, nullable=False)

    status = Column(String, nullable=False, index=True)  # sent, failed, pending, opt_out
    error_message = Column(Text, nullable=True)
    delivery_id = Column(String, nullable=True)

    sent_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class ProductDetail(Base):
    """Product facts fed to the LLM when drafting message variants"""
    __tablename__ = "product_details"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(String, nullable=True)
    features = Column(Text, nullable=True)
    benefits = Column(Text, nullable=True)
    offer = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
