"""
Customer data model

Contact details plus the iFood-style behavioral attributes used for
segmentation and message personalization.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from app.models.base import Base


class Customer(Base):
    """Customer owned by a dashboard user"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Identity
    full_name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    phone = Column(String, nullable=False)
    location = Column(String, default="")
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    age = Column(Integer, nullable=True)

    # Financial profile
    income = Column(Float, nullable=True)
    total_spent = Column(Float, default=0.0)
    total_purchases = Column(Integer, default=0)

    # Spend by product category
    mnt_wines = Column(Float, nullable=True)
    mnt_fruits = Column(Float, nullable=True)
    mnt_meat_products = Column(Float, nullable=True)
    mnt_gold_prods = Column(Float, nullable=True)

    # Purchase channels
    num_web_purchases = Column(Integer, nullable=True)
    num_store_purchases = Column(Integer, nullable=True)
    num_catalog_purchases = Column(Integer, nullable=True)
    num_web_visits_month = Column(Integer, nullable=True)

    # Household
    kidhome = Column(Integer, nullable=True)
    teenhome = Column(Integer, nullable=True)

    # Engagement
    recency = Column(Integer, nullable=True)  # Days since last purchase
    campaigns_accepted = Column(Integer, default=0)  # 0..5
    response = Column(Boolean, default=False)
    complain = Column(Boolean, default=False)

    # Consent: once set, the customer is excluded from every send
    opt_out = Column(Boolean, default=False, index=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Customer {self.id} {self.email}>"
