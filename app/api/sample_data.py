"""
Sample data endpoints for demos and first-run exploration
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.base import get_db
from app.services.sample_data_service import SampleDataService

router = APIRouter(prefix="/sample-data", tags=["sample-data"])


@router.post("/generate")
async def generate_sample_customers(
    count: int = Query(50, description="Number of customers to generate", ge=1, le=1000),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        created = SampleDataService(db).generate_customers(ctx.user_id, count)
    except Exception as e:
        raise_http_error(e, "generating sample data")
    return {
        "success": True,
        "message": f"Generated {created} sample customers",
        "customers_created": created,
    }


@router.post("/seed")
async def seed_demo_data(db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    """Seed demo customers, campaigns, logs and products where the account has none"""
    try:
        summary = SampleDataService(db).seed_demo_data(ctx.user_id)
    except Exception as e:
        raise_http_error(e, "seeding demo data")
    return {"success": True, "message": "Test data seeded successfully", "data": summary}
