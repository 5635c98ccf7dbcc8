"""
Analytics summary and cache tests.

Guards against:
1. Recomputing on every read inside the cache window
2. Serving payloads written by an older snapshot layout
3. Cache failures breaking the summary
"""
from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError

from app.models.analytics import AnalyticsCache
from app.models.campaign import Campaign
from app.services.analytics_service import (
    SNAPSHOT_VERSION,
    AnalyticsService,
    AnalyticsSnapshot,
    cache_key,
    customer_sentiment,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _campaign(db, owner, **fields):
    data = {"name": "C", "message_template": "Hi"}
    data.update(fields)
    campaign = Campaign(user_id=owner.id, **data)
    db.add(campaign)
    db.commit()
    return campaign


# ---------------------------------------------------------------------------
# Computation
# ---------------------------------------------------------------------------

def test_summary_figures(db, user, make_customer):
    make_customer(user, complain=True, campaigns_accepted=2)
    make_customer(user, campaigns_accepted=1)
    make_customer(user, response=True)
    make_customer(user)
    _campaign(db, user, total_revenue=3000.0, total_cost=1000.0, ctr=10.0)
    _campaign(db, user, total_revenue=0.0, total_cost=0.0, ctr=20.0)
    _campaign(db, user)  # no ctr

    snapshot = AnalyticsService(db).compute(user.id, NOW)

    assert snapshot.total_customers == 4
    assert snapshot.total_revenue == 3000.0
    assert snapshot.total_cost == 1000.0
    assert snapshot.roi == 200.0
    assert snapshot.avg_ctr == 15.0
    assert snapshot.sentiment == {"positive": 2, "neutral": 1, "negative": 1}


def test_roi_is_zero_without_cost(db, user):
    _campaign(db, user, total_revenue=500.0, total_cost=0.0)
    assert AnalyticsService(db).compute(user.id, NOW).roi == 0.0


def test_complaint_outranks_positive_signals():
    class C:
        complain = True
        campaigns_accepted = 5
        response = True

    assert customer_sentiment(C()) == "negative"


def test_summary_scoped_to_user(db, user, other_user, make_customer):
    make_customer(user)
    make_customer(other_user)
    make_customer(other_user)
    assert AnalyticsService(db).compute(user.id, NOW).total_customers == 1


# ---------------------------------------------------------------------------
# Cache behaviour
# ---------------------------------------------------------------------------

def test_second_read_within_ttl_is_cached(db, user, make_customer, monkeypatch):
    make_customer(user)
    service = AnalyticsService(db)
    first = service.get_analytics(user.id, NOW)

    make_customer(user)  # not visible until the cache expires
    calls = []
    monkeypatch.setattr(service, "compute", lambda *a, **k: calls.append(1))

    second = service.get_analytics(user.id, NOW + timedelta(minutes=4))
    assert calls == []
    assert second == first
    assert second.total_customers == 1


def test_expired_cache_recomputes(db, user, make_customer):
    make_customer(user)
    service = AnalyticsService(db)
    service.get_analytics(user.id, NOW)
    make_customer(user)

    fresh = service.get_analytics(user.id, NOW + timedelta(minutes=6))
    assert fresh.total_customers == 2
    row = db.query(AnalyticsCache).filter(AnalyticsCache.user_id == user.id).one()
    assert row.cache_key == cache_key(user.id)
    assert row.expires_at == NOW + timedelta(minutes=11)


def test_old_version_payload_is_a_miss(db, user, make_customer):
    make_customer(user)
    db.add(AnalyticsCache(
        user_id=user.id,
        cache_key=cache_key(user.id),
        data={"total_customers": 999, "version": SNAPSHOT_VERSION - 1},
        expires_at=NOW + timedelta(minutes=5),
    ))
    db.commit()

    assert AnalyticsService(db).get_analytics(user.id, NOW).total_customers == 1


def test_snapshot_round_trips_through_dict():
    snapshot = AnalyticsSnapshot(total_customers=3, roi=12.5, computed_at=NOW.isoformat())
    assert AnalyticsSnapshot.from_dict(snapshot.to_dict()) == snapshot


def test_cache_write_failure_still_returns_value(db, user, make_customer, monkeypatch):
    make_customer(user)
    service = AnalyticsService(db)

    def failing_commit():
        raise OperationalError("UPSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)
    snapshot = service.get_analytics(user.id, NOW)
    assert snapshot.total_customers == 1


def test_cleanup_removes_only_expired_rows(db, user, other_user):
    db.add(AnalyticsCache(user_id=user.id, cache_key="a", data={}, expires_at=NOW - timedelta(seconds=1)))
    db.add(AnalyticsCache(user_id=other_user.id, cache_key="b", data={}, expires_at=NOW + timedelta(minutes=1)))
    db.commit()

    assert AnalyticsService(db).cleanup_expired(NOW) == 1
    assert [r.cache_key for r in db.query(AnalyticsCache)] == ["b"]
