"""
Customer Store

CRUD over a user's customers. Every query is filtered by the requesting
user's id; another user's customer behaves exactly like a missing one.
"""
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.ab_test import ABTestResult
from app.models.campaign import CampaignLog
from app.models.customer import Customer
from app.services.exceptions import NotFoundError
from app.utils.logger import log

# Columns a caller may set through create/update
EDITABLE_FIELDS = (
    "full_name", "email", "phone", "location", "country", "city", "age",
    "income", "total_spent", "total_purchases",
    "mnt_wines", "mnt_fruits", "mnt_meat_products", "mnt_gold_prods",
    "num_web_purchases", "num_store_purchases", "num_catalog_purchases", "num_web_visits_month",
    "kidhome", "teenhome", "recency", "campaigns_accepted", "response", "complain", "opt_out",
)

REQUIRED_FIELDS = ("full_name", "email", "phone")

# Editable columns that may not be set to null
NOT_NULL_FIELDS = tuple(
    name for name in EDITABLE_FIELDS if not Customer.__table__.columns[name].nullable
)


def _validate(data: Dict) -> None:
    accepted = data.get("campaigns_accepted")
    if accepted is not None and not 0 <= accepted <= 5:
        raise ValueError("campaigns_accepted must be between 0 and 5")
    for field in ("total_spent", "income", "total_purchases"):
        value = data.get(field)
        if value is not None and value < 0:
            raise ValueError(f"{field} cannot be negative")


class CustomerService:
    """Ownership-scoped customer CRUD"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, user_id: int):
        return self.db.query(Customer).filter(Customer.user_id == user_id)

    def create(self, user_id: int, data: Dict) -> Customer:
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise ValueError(f"Missing required field(s): {', '.join(missing)}")
        _validate(data)

        customer = Customer(
            user_id=user_id,
            **{k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None},
        )
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        log.info(f"Created customer {customer.id} for user {user_id}")
        return customer

    def bulk_create(self, user_id: int, rows: List[Dict]) -> int:
        """Insert many customers in one transaction. Rows missing a required field are skipped."""
        created = 0
        for row in rows:
            if any(not row.get(f) for f in REQUIRED_FIELDS):
                continue
            _validate(row)
            self.db.add(Customer(
                user_id=user_id,
                **{k: v for k, v in row.items() if k in EDITABLE_FIELDS and v is not None},
            ))
            created += 1
        self.db.commit()
        log.info(f"Bulk-created {created} customers for user {user_id}")
        return created

    def list(
        self,
        user_id: int,
        search: Optional[str] = None,
        opt_out: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Customer]:
        query = self._query(user_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Customer.full_name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.location.ilike(pattern),
            ))
        if opt_out is not None:
            query = query.filter(Customer.opt_out == opt_out)
        return query.order_by(Customer.id).offset(offset).limit(limit).all()

    def count(self, user_id: int, eligible_only: bool = False) -> int:
        query = self._query(user_id)
        if eligible_only:
            query = query.filter(Customer.opt_out == False)  # noqa: E712
        return query.count()

    def get(self, user_id: int, customer_id: int) -> Customer:
        customer = self._query(user_id).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def update(self, user_id: int, customer_id: int, data: Dict) -> Customer:
        customer = self.get(user_id, customer_id)
        _validate(data)
        for required in REQUIRED_FIELDS:
            if required in data and not data[required]:
                raise ValueError(f"{required} cannot be empty")

        for name in NOT_NULL_FIELDS:
            if name in data and data[name] is None:
                raise ValueError(f"{name} cannot be null")

        # Opt-out is one-way: an edit can set it but never clear it
        if customer.opt_out and data.get("opt_out") is False:
            raise ValueError("Customer has opted out and cannot be re-subscribed")

        for key, value in data.items():
            if key in EDITABLE_FIELDS:
                setattr(customer, key, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValueError(f"Invalid customer update: {e.orig}") from e
        self.db.refresh(customer)
        return customer

    def opt_out(self, user_id: int, customer_id: int) -> Customer:
        customer = self.get(user_id, customer_id)
        if not customer.opt_out:
            customer.opt_out = True
            self.db.commit()
            self.db.refresh(customer)
            log.info(f"Customer {customer_id} opted out")
        return customer

    def delete(self, user_id: int, customer_id: int) -> None:
        """
        Hard-delete a customer.

        Delivery logs are kept with their customer reference nulled. The
        customer's A/B assignment rows go with it; variation aggregates are
        left as they were.
        """
        customer = self.get(user_id, customer_id)

        self.db.query(CampaignLog).filter(
            CampaignLog.customer_id == customer_id
        ).update({CampaignLog.customer_id: None}, synchronize_session=False)
        self.db.query(ABTestResult).filter(
            ABTestResult.customer_id == customer_id
        ).delete(synchronize_session=False)

        self.db.delete(customer)
        self.db.commit()
        log.info(f"Deleted customer {customer_id} for user {user_id}")
