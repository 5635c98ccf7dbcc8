"""
A/B Testing API

Create tests over campaign message variations, run the assignment and
read back per-variation metrics and per-customer results.
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.deps import UserContext, require_user, raise_http_error
from app.models.ab_test import ABTest
from app.models.base import get_db
from app.services.ab_test_service import ABTestService
from app.utils.helpers import row_to_dict

router = APIRouter(prefix="/ab-tests", tags=["ab-tests"])


class ABTestCreate(BaseModel):
    campaign_id: int
    name: str
    templates: List[str] = Field(..., min_length=2, description="One message template per variation")
    traffic_split: int = Field(50, ge=0, le=100)
    customer_count: Optional[int] = Field(None, gt=0)
    target_audience: Optional[str] = None


def _test_out(test: ABTest) -> dict:
    data = row_to_dict(test)
    data["variations"] = [row_to_dict(v) for v in test.variations]
    return data


@router.get("")
async def list_tests(
    campaign_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    tests = ABTestService(db).list(ctx.user_id, campaign_id=campaign_id)
    return {"success": True, "data": [_test_out(t) for t in tests]}


@router.post("", status_code=201)
async def create_test(body: ABTestCreate, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        test = ABTestService(db).create_test(
            ctx.user_id,
            campaign_id=body.campaign_id,
            name=body.name,
            templates=body.templates,
            traffic_split=body.traffic_split,
            customer_count=body.customer_count,
            target_audience=body.target_audience,
        )
    except Exception as e:
        raise_http_error(e, "creating A/B test")
    return {"success": True, "data": _test_out(test)}


@router.get("/{test_id}")
async def get_test(test_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        test = ABTestService(db).get(ctx.user_id, test_id)
    except Exception as e:
        raise_http_error(e, "loading A/B test")
    return {"success": True, "data": _test_out(test)}


@router.post("/{test_id}/start")
async def start_test(test_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    """Assign eligible customers to variations; re-running replaces the previous assignment"""
    service = ABTestService(db)
    try:
        result = service.start_test(ctx.user_id, test_id)
        test = service.get(ctx.user_id, test_id)
    except Exception as e:
        raise_http_error(e, "starting A/B test")
    return {"success": True, "data": {**result.to_dict(), "test": _test_out(test)}}


@router.post("/{test_id}/stop")
async def stop_test(test_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        test = ABTestService(db).stop_test(ctx.user_id, test_id)
    except Exception as e:
        raise_http_error(e, "stopping A/B test")
    return {"success": True, "data": _test_out(test)}


@router.post("/{test_id}/complete")
async def complete_test(test_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        test = ABTestService(db).complete_test(ctx.user_id, test_id)
    except Exception as e:
        raise_http_error(e, "completing A/B test")
    return {"success": True, "data": _test_out(test)}


@router.get("/{test_id}/results")
async def get_test_results(
    test_id: int,
    variation: Optional[str] = Query(None, description="Variation letter, e.g. A"),
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        results = ABTestService(db).get_results(ctx.user_id, test_id, variation_name=variation)
    except Exception as e:
        raise_http_error(e, "loading A/B test results")
    return {"success": True, "data": [row_to_dict(r) for r in results]}


@router.delete("/{test_id}")
async def delete_test(test_id: int, db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    try:
        ABTestService(db).delete_test(ctx.user_id, test_id)
    except Exception as e:
        raise_http_error(e, "deleting A/B test")
    return {"success": True, "message": f"A/B test {test_id} deleted"}
