"""
A/B Test Assignment

Splits a campaign owner's eligible customers across the variations of a
test and simulates the engagement funnel for each group. The simulated
counters and the confidence figure are illustrative only; there is no
statistical test behind them.
"""
import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.ab_test import ABTest, ABTestVariation, ABTestResult
from app.models.campaign import Campaign
from app.models.customer import Customer
from app.services.exceptions import NotFoundError, NoEligibleCustomersError
from app.utils.logger import log

# Engagement multiplier by variation name; anything else is neutral
VARIATION_MULTIPLIERS = {"A": 1.0, "B": 1.15, "C": 1.05}

MAX_CONFIDENCE = 95.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def variation_multiplier(name: str) -> float:
    return VARIATION_MULTIPLIERS.get(name, 1.0)


def variation_names(count: int) -> List[str]:
    """A, B, C ... for the first 26 variations, then V27, V28 ..."""
    letters = string.ascii_uppercase
    return [letters[i] if i < len(letters) else f"V{i + 1}" for i in range(count)]


def split_evenly(items: List, groups: int) -> List[List]:
    """Contiguous split into `groups` chunks of len // groups; the last chunk takes the remainder."""
    size = len(items) // groups
    chunks = []
    for i in range(groups):
        start = i * size
        end = len(items) if i == groups - 1 else start + size
        chunks.append(items[start:end])
    return chunks


def confidence_level(winner_ctr: float, runner_up_ctr: float) -> float:
    return round(min(MAX_CONFIDENCE, 60 + (winner_ctr - runner_up_ctr) * 3), 1)


@dataclass
class FunnelCounts:
    assigned: int
    sent: int
    opened: int
    clicked: int
    converted: int
    replied: int

    @property
    def ctr(self) -> float:
        return round(self.clicked / self.sent * 100, 2) if self.sent else 0.0

    @property
    def conversion_rate(self) -> float:
        return round(self.converted / self.clicked * 100, 2) if self.clicked else 0.0


def simulate_funnel(assigned: int, multiplier: float, rng: random.Random) -> FunnelCounts:
    """Draw one set of engagement rates for a group and floor them into counts"""
    sent_rate = clamp(0.85 + (rng.random() - 0.5) * 0.2, 0.80, 0.95)
    open_rate = clamp((0.35 + (rng.random() - 0.5) * 0.3) * multiplier, 0.20, 0.65)
    click_rate = clamp((0.12 + (rng.random() - 0.5) * 0.1) * multiplier, 0.08, 0.25)
    conversion_rate = clamp((0.08 + (rng.random() - 0.5) * 0.06) * multiplier, 0.05, 0.15)
    reply_rate = clamp((0.03 + (rng.random() - 0.5) * 0.04) * multiplier, 0.02, 0.08)

    sent = int(assigned * sent_rate)
    opened = int(sent * open_rate)
    clicked = int(opened * click_rate)
    converted = int(clicked * conversion_rate)
    replied = int(sent * reply_rate)
    return FunnelCounts(assigned, sent, opened, clicked, converted, replied)


@dataclass
class StartTestResult:
    """Outcome of a start_test run"""
    test_id: int
    total_customers: int
    assignments: Dict[str, int] = field(default_factory=dict)
    winner_variation: Optional[str] = None
    confidence_level: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "test_id": self.test_id,
            "total_customers": self.total_customers,
            "assignments": self.assignments,
            "winner_variation": self.winner_variation,
            "confidence_level": self.confidence_level,
        }


class ABTestService:
    """
    A/B test lifecycle and assignment

    Tests are owned through their campaign: a test whose campaign belongs to
    another user is reported as missing. `rng` may be injected for
    deterministic runs.
    """

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng or random.Random()
        self.settings = get_settings()

    def _query(self, user_id: int):
        return self.db.query(ABTest).join(Campaign, ABTest.campaign_id == Campaign.id).filter(
            Campaign.user_id == user_id
        )

    def create_test(
        self,
        user_id: int,
        campaign_id: int,
        name: str,
        templates: List[str],
        traffic_split: int = 50,
        customer_count: Optional[int] = None,
        target_audience: Optional[str] = None,
    ) -> ABTest:
        campaign = self.db.query(Campaign).filter(
            Campaign.id == campaign_id, Campaign.user_id == user_id
        ).first()
        if not campaign:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        if not name:
            raise ValueError("Test name is required")
        templates = [t for t in (templates or []) if t and t.strip()]
        if len(templates) < 2:
            raise ValueError("At least two variation templates are required")
        if not 0 <= traffic_split <= 100:
            raise ValueError("traffic_split must be between 0 and 100")
        if customer_count is not None and customer_count <= 0:
            raise ValueError("customer_count must be positive")

        test = ABTest(
            campaign_id=campaign.id,
            name=name,
            traffic_split=traffic_split,
            customer_count=customer_count or self.settings.ab_test_default_customer_limit,
            target_audience=target_audience,
            status="draft",
        )
        share = round(100 / len(templates), 2)
        for variation_name, template in zip(variation_names(len(templates)), templates):
            test.variations.append(ABTestVariation(
                variation_name=variation_name,
                message_template=template,
                traffic_allocation=share,
            ))
        self.db.add(test)
        self.db.commit()
        self.db.refresh(test)
        log.info(f"Created A/B test {test.id} '{name}' with {len(templates)} variations")
        return test

    def list(self, user_id: int, campaign_id: Optional[int] = None) -> List[ABTest]:
        query = self._query(user_id)
        if campaign_id is not None:
            query = query.filter(ABTest.campaign_id == campaign_id)
        return query.order_by(desc(ABTest.created_at), desc(ABTest.id)).all()

    def get(self, user_id: int, test_id: int) -> ABTest:
        test = self._query(user_id).filter(ABTest.id == test_id).first()
        if not test:
            raise NotFoundError(f"A/B test {test_id} not found")
        return test

    def start_test(self, user_id: int, test_id: int) -> StartTestResult:
        """
        Assign eligible customers to variations and simulate their funnel.

        Runs as one transaction. A re-run replaces the previous assignment.
        """
        test = self.get(user_id, test_id)
        campaign = test.campaign
        if not campaign:
            raise NotFoundError(f"Campaign for A/B test {test_id} not found")
        variations = list(test.variations)
        if not variations:
            raise NotFoundError(f"No variations found for A/B test {test_id}")

        limit = test.customer_count or self.settings.ab_test_default_customer_limit
        pool = (
            self.db.query(Customer)
            .filter(Customer.user_id == campaign.user_id, Customer.opt_out == False)  # noqa: E712
            .order_by(Customer.id)
            .limit(limit)
            .all()
        )
        if not pool:
            raise NoEligibleCustomersError("No eligible customers found for testing")

        log.info(f"Starting A/B test {test.id}: {len(pool)} customers across {len(variations)} variations")
        try:
            result = self._assign(test, variations, pool)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log.info(
            f"A/B test {test.id} running; winner={result.winner_variation} "
            f"confidence={result.confidence_level}"
        )
        return result

    def _assign(self, test: ABTest, variations: List[ABTestVariation], pool: List[Customer]) -> StartTestResult:
        now = datetime.utcnow()

        self.db.query(ABTestResult).filter(ABTestResult.ab_test_id == test.id).delete(
            synchronize_session=False
        )
        test.winner_variation = None
        test.confidence_level = None
        for variation in variations:
            variation.is_winner = False

        shuffled = list(pool)
        self.rng.shuffle(shuffled)
        groups = split_evenly(shuffled, len(variations))

        result = StartTestResult(test_id=test.id, total_customers=len(pool))
        for variation, group in zip(variations, groups):
            counts = simulate_funnel(len(group), variation_multiplier(variation.variation_name), self.rng)
            for index, customer in enumerate(group):
                self.db.add(self._result_row(test.id, variation.id, customer.id, index, counts, now))

            variation.audience_count = counts.assigned
            variation.sent_count = counts.sent
            variation.opened_count = counts.opened
            variation.read_count = counts.opened
            variation.clicked_count = counts.clicked
            variation.conversion_count = counts.converted
            variation.reply_count = counts.replied
            variation.ctr = counts.ctr
            variation.conversion_rate = counts.conversion_rate
            result.assignments[variation.variation_name] = counts.assigned

        if len(variations) >= 2:
            ranked = sorted(variations, key=lambda v: v.ctr or 0.0, reverse=True)
            winner, runner_up = ranked[0], ranked[1]
            winner.is_winner = True
            test.winner_variation = winner.variation_name
            test.confidence_level = confidence_level(winner.ctr or 0.0, runner_up.ctr or 0.0)
            result.winner_variation = test.winner_variation
            result.confidence_level = test.confidence_level

        test.status = "running"
        test.started_at = now
        test.completed_at = None
        self.db.flush()
        return result

    def _result_row(
        self,
        test_id: int,
        variation_id: int,
        customer_id: int,
        index: int,
        counts: FunnelCounts,
        now: datetime,
    ) -> ABTestResult:
        # Each funnel stage is a prefix of the one before it
        sent = index < counts.sent
        opened = index < counts.opened
        clicked = index < counts.clicked
        converted = index < counts.converted
        replied = index < counts.replied
        return ABTestResult(
            ab_test_id=test_id,
            variation_id=variation_id,
            customer_id=customer_id,
            assigned_at=now,
            message_sent=sent,
            message_sent_at=now if sent else None,
            opened=opened,
            opened_at=now if opened else None,
            clicked=clicked,
            clicked_at=now if clicked else None,
            converted=converted,
            converted_at=now if converted else None,
            replied=replied,
            replied_at=now if replied else None,
            revenue=round(self.rng.uniform(50, 250), 2) if converted else None,
        )

    def stop_test(self, user_id: int, test_id: int) -> ABTest:
        test = self.get(user_id, test_id)
        if test.status != "running":
            raise ValueError(f"Only a running test can be stopped (status is {test.status})")
        test.status = "stopped"
        self.db.commit()
        self.db.refresh(test)
        log.info(f"Stopped A/B test {test_id}")
        return test

    def complete_test(self, user_id: int, test_id: int) -> ABTest:
        test = self.get(user_id, test_id)
        if test.status not in ("running", "stopped"):
            raise ValueError(f"Only a started test can be completed (status is {test.status})")
        test.status = "completed"
        test.completed_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(test)
        log.info(f"Completed A/B test {test_id}")
        return test

    def delete_test(self, user_id: int, test_id: int) -> None:
        test = self.get(user_id, test_id)
        self.db.query(ABTestResult).filter(ABTestResult.ab_test_id == test.id).delete(
            synchronize_session=False
        )
        self.db.delete(test)
        self.db.commit()
        log.info(f"Deleted A/B test {test_id}")

    def get_results(self, user_id: int, test_id: int, variation_name: Optional[str] = None) -> List[ABTestResult]:
        test = self.get(user_id, test_id)
        query = self.db.query(ABTestResult).filter(ABTestResult.ab_test_id == test.id)
        if variation_name:
            query = query.join(ABTestVariation, ABTestResult.variation_id == ABTestVariation.id).filter(
                ABTestVariation.variation_name == variation_name
            )
        return query.order_by(ABTestResult.variation_id, ABTestResult.id).all()

