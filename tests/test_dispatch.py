"""
Message dispatch tests.

Guards against:
1. Opted-out customers reaching a transport
2. One failed recipient aborting the rest of the batch
3. Missing or duplicated delivery log rows
"""
import asyncio

import pytest

from app.models.campaign import Campaign, CampaignLog
from app.services.dispatch_service import DispatchService
from app.services.exceptions import NoEligibleCustomersError, NotFoundError
from app.utils.templating import WHATSAPP_FOOTER


def _run(coro):
    """Run an async coroutine in a sync test."""
    return asyncio.run(coro)


def _service(db, transport):
    return DispatchService(db, transports={transport.channel: transport})


# ---------------------------------------------------------------------------
# Targeting
# ---------------------------------------------------------------------------

def test_send_to_all_skips_opted_out_entirely(db, user, make_customer, fake_transport):
    make_customer(user)
    make_customer(user)
    make_customer(user, opt_out=True)
    transport = fake_transport()

    result = _run(_service(db, transport).dispatch(user.id, "whatsapp", "Promo", "Hi", send_to_all=True))

    assert result.total == 2
    assert result.sent == 2
    assert result.opted_out == 0
    assert len(transport.sent) == 2


def test_explicit_ids_record_opt_out_without_sending(db, user, make_customer, fake_transport):
    active = make_customer(user)
    opted = make_customer(user, opt_out=True)
    transport = fake_transport()

    result = _run(_service(db, transport).dispatch(
        user.id, "whatsapp", "Promo", "Hi {{customer_name}}", customer_ids=[active.id, opted.id]
    ))

    assert (result.sent, result.opted_out, result.failed) == (1, 1, 0)
    assert [m["to"] for m in transport.sent] == ["+1" + active.phone]
    log = db.query(CampaignLog).filter(CampaignLog.customer_id == opted.id).one()
    assert log.status == "opt_out"


def test_other_users_customers_are_not_targeted(db, user, other_user, make_customer, fake_transport):
    foreign = make_customer(other_user)
    with pytest.raises(NoEligibleCustomersError):
        _run(_service(db, fake_transport()).dispatch(user.id, "whatsapp", "Promo", "Hi", customer_ids=[foreign.id]))


def test_no_customers_raises(db, user, fake_transport):
    with pytest.raises(NoEligibleCustomersError):
        _run(_service(db, fake_transport()).dispatch(user.id, "whatsapp", "Promo", "Hi"))


def test_email_requires_subject(db, user, make_customer, fake_transport):
    make_customer(user)
    with pytest.raises(ValueError):
        _run(_service(db, fake_transport("email")).dispatch(user.id, "email", "Promo", "Hi"))


# ---------------------------------------------------------------------------
# Outcomes and logging
# ---------------------------------------------------------------------------

def test_failure_does_not_abort_batch(db, user, make_customer, fake_transport):
    first = make_customer(user)
    bad = make_customer(user)
    crash = make_customer(user)
    last = make_customer(user)
    transport = fake_transport(fail_for={"+1" + bad.phone}, raise_for={"+1" + crash.phone})

    result = _run(_service(db, transport).dispatch(user.id, "whatsapp", "Promo", "Hi", send_to_all=True))

    assert (result.total, result.sent, result.failed) == (4, 2, 2)
    statuses = {
        log.customer_id: log.status
        for log in db.query(CampaignLog).filter(CampaignLog.user_id == user.id)
    }
    assert statuses == {first.id: "sent", bad.id: "failed", crash.id: "failed", last.id: "sent"}
    failed = db.query(CampaignLog).filter(CampaignLog.customer_id == crash.id).one()
    assert failed.error_message == "connection reset"


def test_one_log_row_per_attempt(db, user, make_customer, fake_transport):
    for _ in range(5):
        make_customer(user)
    _run(_service(db, fake_transport()).dispatch(user.id, "whatsapp", "Promo", "Hi", send_to_all=True))
    assert db.query(CampaignLog).count() == 5


def test_whatsapp_message_personalized_with_footer(db, user, make_customer, fake_transport):
    make_customer(user, full_name="Ana Silva", total_spent=500)
    transport = fake_transport()

    _run(_service(db, transport).dispatch(
        user.id, "whatsapp", "Promo", "Hi {{customer_name}}, you've spent {{total_spent}}", send_to_all=True
    ))

    body = transport.sent[0]["body"]
    assert body.startswith("Hi Ana Silva, you've spent $500")
    assert body.endswith(WHATSAPP_FOOTER)
    log = db.query(CampaignLog).one()
    assert log.delivery_id == "msg-1"
    assert log.sent_at is not None


def test_email_goes_to_email_address_with_subject(db, user, make_customer, fake_transport):
    customer = make_customer(user, full_name="Bo")
    transport = fake_transport("email")

    _run(_service(db, transport).dispatch(
        user.id, "email", "News", "Hello {{customer_name}}", send_to_all=True, subject="For {{customer_name}}"
    ))

    sent = transport.sent[0]
    assert sent["to"] == customer.email
    assert sent["subject"] == "For Bo"
    assert "UNSUBSCRIBE" in sent["body"]
    assert db.query(CampaignLog).one().recipient_email == customer.email


def test_campaign_sent_count_grows_by_successes(db, user, make_customer, fake_transport):
    good = make_customer(user)
    bad = make_customer(user)
    campaign = Campaign(user_id=user.id, name="Launch", message_template="Hi", sent_count=3)
    db.add(campaign)
    db.commit()

    _run(_service(db, fake_transport(fail_for={"+1" + bad.phone})).dispatch_campaign(user.id, campaign))

    db.refresh(campaign)
    assert campaign.sent_count == 4
    assert {log.campaign_id for log in db.query(CampaignLog)} == {campaign.id}
    assert good.id in {log.customer_id for log in db.query(CampaignLog).filter(CampaignLog.status == "sent")}


def test_foreign_campaign_id_is_rejected_before_sending(db, user, other_user, make_customer, fake_transport):
    mine = make_customer(user)
    theirs = Campaign(user_id=other_user.id, name="Theirs", message_template="Hi", sent_count=0)
    db.add(theirs)
    db.commit()
    transport = fake_transport()

    with pytest.raises(NotFoundError):
        _run(_service(db, transport).dispatch(
            user.id, "whatsapp", "Promo", "Hi", customer_ids=[mine.id], campaign_id=theirs.id
        ))

    db.refresh(theirs)
    assert theirs.sent_count == 0
    assert transport.sent == []
    assert db.query(CampaignLog).count() == 0
