"""
Customer store tests.

Guards against:
1. Cross-user reads and writes
2. Opted-out customers being re-subscribed
3. Delivery history lost when a customer is deleted
"""
import pytest

from app.models.campaign import CampaignLog
from app.services.customer_service import CustomerService
from app.services.exceptions import NotFoundError


def _data(**overrides):
    data = {"full_name": "Ana Silva", "email": "ana@example.com", "phone": "+351900000000"}
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Create / validate
# ---------------------------------------------------------------------------

def test_create_defaults(db, user):
    customer = CustomerService(db).create(user.id, _data())
    assert customer.id is not None
    assert customer.opt_out is False
    assert customer.campaigns_accepted == 0


def test_create_requires_contact_fields(db, user):
    with pytest.raises(ValueError):
        CustomerService(db).create(user.id, _data(phone=""))


def test_campaigns_accepted_bounded(db, user):
    with pytest.raises(ValueError):
        CustomerService(db).create(user.id, _data(campaigns_accepted=6))


def test_bulk_create_skips_incomplete_rows(db, user):
    created = CustomerService(db).bulk_create(user.id, [_data(), _data(email=""), _data(full_name="Bo")])
    assert created == 2


# ---------------------------------------------------------------------------
# Queries and ownership
# ---------------------------------------------------------------------------

def test_list_search_and_opt_out_filter(db, user, make_customer):
    make_customer(user, full_name="Alice Walker")
    make_customer(user, full_name="Bob Stone", opt_out=True)
    service = CustomerService(db)

    assert [c.full_name for c in service.list(user.id, search="walk")] == ["Alice Walker"]
    assert [c.full_name for c in service.list(user.id, opt_out=True)] == ["Bob Stone"]
    assert service.count(user.id) == 2
    assert service.count(user.id, eligible_only=True) == 1


def test_other_users_customer_is_not_found(db, user, other_user, make_customer):
    foreign = make_customer(other_user)
    service = CustomerService(db)
    with pytest.raises(NotFoundError):
        service.get(user.id, foreign.id)
    with pytest.raises(NotFoundError):
        service.update(user.id, foreign.id, {"full_name": "Hijacked"})
    with pytest.raises(NotFoundError):
        service.delete(user.id, foreign.id)


# ---------------------------------------------------------------------------
# Opt-out
# ---------------------------------------------------------------------------

def test_opt_out_is_one_way(db, user, make_customer):
    customer = make_customer(user)
    service = CustomerService(db)

    assert service.opt_out(user.id, customer.id).opt_out is True
    with pytest.raises(ValueError):
        service.update(user.id, customer.id, {"opt_out": False})
    assert service.get(user.id, customer.id).opt_out is True


def test_update_can_set_opt_out(db, user, make_customer):
    customer = make_customer(user)
    updated = CustomerService(db).update(user.id, customer.id, {"opt_out": True, "city": "Porto"})
    assert updated.opt_out is True
    assert updated.city == "Porto"


def test_update_rejects_null_for_required_columns(db, user, make_customer):
    customer = make_customer(user)
    service = CustomerService(db)

    with pytest.raises(ValueError):
        service.update(user.id, customer.id, {"opt_out": None})
    assert service.get(user.id, customer.id).opt_out is False


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def test_delete_keeps_logs_with_null_customer(db, user, make_customer):
    customer = make_customer(user)
    db.add(CampaignLog(
        user_id=user.id, campaign_name="Promo", customer_id=customer.id,
        channel="whatsapp", message_content="Hi", status="sent",
    ))
    db.commit()

    CustomerService(db).delete(user.id, customer.id)

    log = db.query(CampaignLog).one()
    assert log.customer_id is None
    assert log.campaign_name == "Promo"
