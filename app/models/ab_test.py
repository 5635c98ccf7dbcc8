"""
A/B test models

A test belongs to one campaign and owns its variations. Each customer
assignment is one ABTestResult row carrying the simulated engagement funnel.
"""
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.models.base import Base


AB_TEST_STATUSES = ("draft", "running", "stopped", "completed")


class ABTest(Base):
    """A/B test over message variations of a campaign"""
    __tablename__ = "ab_tests"

    id = Column(Integer, primary_key=True, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    # Informational only; assignment splits the pool evenly
    traffic_split = Column(Integer, nullable=False, default=50)
    customer_count = Column(Integer, nullable=True)  # Cap on the eligible pool
    target_audience = Column(String, nullable=True)

    status = Column(String, nullable=False, default="draft", index=True)
    winner_variation = Column(String, nullable=True)
    confidence_level = Column(Float, nullable=True)  # 0-100, not a real significance level

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    campaign = relationship("Campaign", back_populates="ab_tests")
    variations = relationship(
        "ABTestVariation",
        back_populates="ab_test",
        cascade="all, delete-orphan",
        order_by="ABTestVariation.id",
    )


class ABTestVariation(Base):
    """One candidate message within a test, with accumulated metrics"""
    __tablename__ = "ab_test_variations"

    id = Column(Integer, primary_key=True, index=True)
    ab_test_id = Column(Integer, ForeignKey("ab_tests.id", ondelete="CASCADE"), nullable=False, index=True)
    variation_name = Column(String, nullable=False)  # A, B, C...
    message_template = Column(Text, nullable=False)
    traffic_allocation = Column(Float, nullable=True)

    # Metrics
    audience_count = Column(Integer, default=0)
    sent_count = Column(Integer, default=0)
    opened_count = Column(Integer, default=0)
    read_count = Column(Integer, default=0)
    clicked_count = Column(Integer, default=0)
    conversion_count = Column(Integer, default=0)
    reply_count = Column(Integer, default=0)
    ctr = Column(Float, default=0.0)  # clicked / sent, percent
    conversion_rate = Column(Float, default=0.0)  # converted / clicked, percent
    is_winner = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    ab_test = relationship("ABTest", back_populates="variations")

    __table_args__ = (
        UniqueConstraint('ab_test_id', 'variation_name', name='uq_ab_variation_name'),
    )


class ABTestResult(Base):
    """Assignment of one customer to one variation, plus funnel flags"""
    __tablename__ = "ab_test_results"

    id = Column(Integer, primary_key=True, index=True)
    ab_test_id = Column(Integer, ForeignKey("ab_tests.id", ondelete="CASCADE"), nullable=False, index=True)
    variation_id = Column(Integer, ForeignKey("ab_test_variations.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime, nullable=False)

    message_sent = Column(Boolean, default=False)
    message_sent_at = Column(DateTime, nullable=True)
    opened = Column(Boolean, default=False)
    opened_at = Column(DateTime, nullable=True)
    clicked = Column(Boolean, default=False)
    clicked_at = Column(DateTime, nullable=True)
    converted = Column(Boolean, default=False)
    converted_at = Column(DateTime, nullable=True)
    replied = Column(Boolean, default=False)
    replied_at = Column(DateTime, nullable=True)
    revenue = Column(Float, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('ab_test_id', 'customer_id', name='uq_ab_result_test_customer'),
    )
