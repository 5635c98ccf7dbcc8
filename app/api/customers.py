"""
Customer API

CRUD over the caller's customers plus the one-way opt-out.
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.base import get_db
from app.services.customer_service import CustomerService
from app.utils.helpers import row_to_dict

router = APIRouter(prefix="/customers", tags=["customers"])


class CustomerFields(BaseModel):
    location: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    age: Optional[int] = None
    income: Optional[float] = None
    total_spent: Optional[float] = None
    total_purchases: Optional[int] = None
    mnt_wines: Optional[float] = None
    mnt_fruits: Optional[float] = None
    mnt_meat_products: Optional[float] = None
    mnt_gold_prods: Optional[float] = None
    num_web_purchases: Optional[int] = None
    num_store_purchases: Optional[int] = None
    num_catalog_purchases: Optional[int] = None
    num_web_visits_month: Optional[int] = None
    kidhome: Optional[int] = None
    teenhome: Optional[int] = None
    recency: Optional[int] = None
    campaigns_accepted: Optional[int] = None
    response: Optional[bool] = None
    complain: Optional[bool] = None
    opt_out: Optional[bool] = None


class CustomerCreate(CustomerFields):
    full_name: str
    email: str
    phone: str


class CustomerUpdate(CustomerFields):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@router.get("")
async def list_customers(
    search: Optional[str] = Query(None, description="Match on name, email or location"),
    opt_out: Optional[bool] = Query(None, description="Filter by opt-out status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    service = CustomerService(db)
    customers = service.list(ctx.user_id, search=search, opt_out=opt_out, limit=limit, offset=offset)
    return {
        "success": True,
        "data": [row_to_dict(c) for c in customers],
        "total": service.count(ctx.user_id),
        "eligible": service.count(ctx.user_id, eligible_only=True),
    }


@router.post("", status_code=201)
async def create_customer(
    body: CustomerCreate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        customer = CustomerService(db).create(ctx.user_id, body.model_dump(exclude_none=True))
    except Exception as e:
        raise_http_error(e, "creating customer")
    return {"success": True, "data": row_to_dict(customer)}


@router.get("/{customer_id}")
async def get_customer(customer_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        customer = CustomerService(db).get(ctx.user_id, customer_id)
    except Exception as e:
        raise_http_error(e, "loading customer")
    return {"success": True, "data": row_to_dict(customer)}


@router.put("/{customer_id}")
async def update_customer(
    customer_id: int,
    body: CustomerUpdate,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        customer = CustomerService(db).update(ctx.user_id, customer_id, body.model_dump(exclude_unset=True))
    except Exception as e:
        raise_http_error(e, "updating customer")
    return {"success": True, "data": row_to_dict(customer)}


@router.post("/{customer_id}/opt-out")
async def opt_out_customer(customer_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    """Permanently exclude a customer from sends and A/B assignment"""
    try:
        customer = CustomerService(db).opt_out(ctx.user_id, customer_id)
    except Exception as e:
        raise_http_error(e, "opting out customer")
    return {"success": True, "data": row_to_dict(customer)}


@router.delete("/{customer_id}")
async def delete_customer(customer_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        CustomerService(db).delete(ctx.user_id, customer_id)
    except Exception as e:
        raise_http_error(e, "deleting customer")
    return {"success": True, "message": f"Customer {customer_id} deleted"}
