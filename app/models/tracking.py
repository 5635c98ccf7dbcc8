"""
Landing page tracking events, optionally tied to an A/B variation
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from app.models.base import Base


class PageVisit(Base):
    __tablename__ = "page_visits"

    id = Column(Integer, primary_key=True, index=True)
    page_path = Column(String, nullable=False, index=True)
    variation_id = Column(Integer, ForeignKey("ab_test_variations.id", ondelete="SET NULL"), nullable=True, index=True)
    session_id = Column(String, nullable=True, index=True)

    utm_source = Column(String, nullable=True)
    utm_medium = Column(String, nullable=True)
    utm_campaign = Column(String, nullable=True)
    utm_content = Column(String, nullable=True)
    utm_term = Column(String, nullable=True)
    referrer = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())


class ClickEvent(Base):
    __tablename__ = "click_events"

    id = Column(Integer, primary_key=True, index=True)
    button_id = Column(String, nullable=False)
    button_text = Column(String, nullable=True)
    page_path = Column(String, nullable=False, index=True)
    variation_id = Column(Integer, ForeignKey("ab_test_variations.id", ondelete="SET NULL"), nullable=True, index=True)
    session_id = Column(String, nullable=True, index=True)

    utm_source = Column(String, nullable=True)
    utm_medium = Column(String, nullable=True)
    utm_campaign = Column(String, nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
