"""
Sample Data Service
Random iFood-style customers for trying the dashboard, and a one-time demo seed
"""
import random
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.models.campaign import Campaign, CampaignLog, ProductDetail
from app.models.customer import Customer
from app.services.campaign_service import calculate_roi
from app.services.customer_service import CustomerService
from app.utils.logger import log

SAMPLE_NAMES = [
    'John Smith', 'Maria Garcia', 'David Johnson', 'Sarah Williams', 'Michael Brown',
    'Lisa Davis', 'Robert Miller', 'Jennifer Wilson', 'William Moore', 'Elizabeth Taylor',
    'James Anderson', 'Patricia Thomas', 'Christopher Jackson', 'Linda White', 'Daniel Harris',
]

SAMPLE_CITIES = [
    'New York', 'Los Angeles', 'Chicago', 'Houston', 'Phoenix',
    'Philadelphia', 'San Antonio', 'San Diego', 'Dallas', 'San Jose',
    'Austin', 'Jacksonville', 'Fort Worth', 'Columbus', 'Charlotte',
]

SEED_NAMES = [
    'Alice Johnson', 'Bob Smith', 'Carol Davis', 'David Wilson', 'Emma Brown',
    'Frank Miller', 'Grace Lee', 'Henry Garcia', 'Ivy Martinez', 'Jack Anderson',
    'Kate Thompson', 'Liam White', 'Maya Rodriguez', 'Noah Clark', 'Olivia Lewis',
    'Paul Walker', 'Quinn Hall', 'Ruby Allen', 'Sam Young', 'Tara King',
    'Uma Hernandez', 'Victor Wright', 'Wendy Lopez', 'Xavier Hill', 'Yara Green',
]

SEED_LOCATIONS = [
    ('New York', 'NY'), ('Los Angeles', 'CA'), ('Chicago', 'IL'), ('Houston', 'TX'), ('Phoenix', 'AZ'),
    ('Philadelphia', 'PA'), ('San Antonio', 'TX'), ('San Diego', 'CA'), ('Dallas', 'TX'), ('San Jose', 'CA'),
    ('Austin', 'TX'), ('Jacksonville', 'FL'), ('Fort Worth', 'TX'), ('Columbus', 'OH'), ('Charlotte', 'NC'),
]

EMAIL_DOMAINS = ['gmail.com', 'yahoo.com', 'hotmail.com', 'outlook.com']

SEED_PRODUCTS = [
    {
        "name": "Premium Wireless Headphones",
        "description": "High-quality noise-canceling wireless headphones with 30-hour battery life",
        "price": "$199.99",
        "features": "Noise-canceling, 30-hour battery, Bluetooth 5.0, Quick charge",
        "benefits": "Crystal clear audio, All-day comfort, Seamless connectivity",
        "offer": "30% off for limited time + Free shipping",
    },
    {
        "name": "Smart Fitness Tracker",
        "description": "Advanced fitness tracker with heart rate monitoring and GPS",
        "price": "$149.99",
        "features": "Heart rate monitor, GPS, Sleep tracking, Water resistant",
        "benefits": "Track your health goals, Improve sleep quality, Stay motivated",
        "offer": "Buy 2 get 1 free + Extended warranty",
    },
]

# Per-iFood-campaign acceptance probabilities (AcceptedCmp1..5)
SAMPLE_ACCEPTANCE_ODDS = (0.3, 0.2, 0.25, 0.15, 0.1)
SEED_ACCEPTANCE_ODDS = (0.3, 0.25, 0.2, 0.15, 0.1)


class SampleDataService:

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng or random.Random()

    def _accepted(self, odds) -> int:
        return sum(1 for p in odds if self.rng.random() < p)

    def _phone(self) -> str:
        return f"+1{self.rng.randint(1000000000, 9999999999)}"

    def sample_customer(self) -> Dict:
        """One random customer row"""
        rng = self.rng
        name = rng.choice(SAMPLE_NAMES)
        mnt = {
            "mnt_wines": round(rng.random() * 500, 2),
            "mnt_fruits": round(rng.random() * 200, 2),
            "mnt_meat_products": round(rng.random() * 800, 2),
            "mnt_gold_prods": round(rng.random() * 300, 2),
        }
        web, store, catalog = rng.randrange(20), rng.randrange(15), rng.randrange(10)
        return {
            "full_name": name,
            "email": f"{name.lower().replace(' ', '.')}{rng.randrange(1000)}@email.com",
            "phone": self._phone(),
            "location": rng.choice(SAMPLE_CITIES),
            "country": "US",
            "age": 25 + rng.randrange(40),
            "income": round(30000 + rng.random() * 70000),
            "kidhome": rng.randrange(3),
            "teenhome": rng.randrange(2),
            "recency": rng.randrange(365),
            **mnt,
            "total_spent": round(sum(mnt.values()), 2),
            "num_web_purchases": web,
            "num_store_purchases": store,
            "num_catalog_purchases": catalog,
            "total_purchases": web + store + catalog,
            "num_web_visits_month": rng.randrange(20),
            "campaigns_accepted": self._accepted(SAMPLE_ACCEPTANCE_ODDS),
            "complain": rng.random() > 0.95,
            "response": rng.random() > 0.5,
        }

    def generate_customers(self, user_id: int, count: int = 50) -> int:
        if not 1 <= count <= 1000:
            raise ValueError("count must be between 1 and 1000")
        created = CustomerService(self.db).bulk_create(
            user_id, [self.sample_customer() for _ in range(count)]
        )
        log.info(f"Generated {created} sample customers for user {user_id}")
        return created

    def seed_demo_data(self, user_id: int) -> Dict:
        """
        Seed demo customers, campaigns, logs and products.

        Each group is only created when the user has none of that kind yet,
        so running it twice is harmless.
        """
        now = datetime.utcnow()
        summary = {"customers_created": 0, "campaigns_created": 0, "logs_created": 0, "products_created": 0}

        customers = self.db.query(Customer).filter(Customer.user_id == user_id).order_by(Customer.id).all()
        if not customers:
            customers = [self._seed_customer(user_id, i, name) for i, name in enumerate(SEED_NAMES)]
            self.db.add_all(customers)
            self.db.flush()
            summary["customers_created"] = len(customers)

        has_campaigns = self.db.query(Campaign.id).filter(Campaign.user_id == user_id).first()
        if not has_campaigns:
            campaigns = self._seed_campaigns(user_id, len(customers), now)
            self.db.add_all(campaigns)
            self.db.flush()
            summary["campaigns_created"] = len(campaigns)
            for campaign in campaigns:
                if campaign.status == "completed":
                    summary["logs_created"] += self._seed_logs(user_id, campaign, customers, now)

        has_products = self.db.query(ProductDetail.id).filter(ProductDetail.user_id == user_id).first()
        if not has_products:
            self.db.add_all(ProductDetail(user_id=user_id, **p) for p in SEED_PRODUCTS)
            summary["products_created"] = len(SEED_PRODUCTS)

        self.db.commit()
        summary["customer_count"] = len(customers)
        log.info(f"Seeded demo data for user {user_id}: {summary}")
        return summary

    def _seed_customer(self, user_id: int, index: int, name: str) -> Customer:
        rng = self.rng
        city, state = SEED_LOCATIONS[index % len(SEED_LOCATIONS)]
        return Customer(
            user_id=user_id,
            full_name=name,
            email=f"{name.lower().replace(' ', '.')}@{EMAIL_DOMAINS[index % len(EMAIL_DOMAINS)]}",
            phone=self._phone(),
            location=f"{city}, {state}",
            country="US",
            city=city,
            age=rng.randint(20, 69),
            income=float(rng.randint(30000, 109999)),
            total_spent=float(rng.randint(100, 5099)),
            total_purchases=rng.randint(1, 20),
            campaigns_accepted=self._accepted(SEED_ACCEPTANCE_ODDS),
            recency=rng.randrange(365),
            mnt_wines=float(rng.randrange(1000)),
            mnt_fruits=float(rng.randrange(500)),
            mnt_meat_products=float(rng.randrange(800)),
            mnt_gold_prods=float(rng.randrange(300)),
            num_web_purchases=rng.randrange(10),
            num_catalog_purchases=rng.randrange(5),
            num_store_purchases=rng.randrange(15),
            num_web_visits_month=rng.randrange(20),
            complain=rng.random() < 0.1,
            response=rng.random() < 0.15,
            opt_out=rng.random() < 0.05,
            kidhome=rng.randrange(3),
            teenhome=rng.randrange(2),
        )

    def _seed_campaigns(self, user_id: int, customer_count: int, now: datetime):
        def share(fraction: float) -> int:
            return int(customer_count * fraction)

        return [
            Campaign(
                user_id=user_id,
                name="Summer Sale WhatsApp Campaign",
                type="whatsapp",
                status="completed",
                target_audience="Premium Customers",
                message_template="Hi {{customer_name}}! 🌞 Our Summer Sale is here with 30% off premium products. Don't miss out!",
                schedule_type="now",
                ai_optimization=True,
                audience_count=share(0.6),
                sent_count=share(0.55),
                opened_count=share(0.35),
                clicked_count=share(0.15),
                ctr=15.2,
                start_date=now - timedelta(days=7),
                end_date=now - timedelta(days=5),
                total_revenue=8500.0,
                total_cost=1200.0,
                roi=calculate_roi(8500.0, 1200.0),
            ),
            Campaign(
                user_id=user_id,
                name="New Product Launch Email",
                type="email",
                status="active",
                target_audience="New Customers",
                message_template="Hello {{customer_name}}, discover our latest innovation! Perfect for your lifestyle in {{location}}.",
                schedule_type="now",
                ai_optimization=True,
                audience_count=share(0.4),
                sent_count=share(0.35),
                opened_count=share(0.2),
                clicked_count=share(0.08),
                ctr=8.9,
                start_date=now - timedelta(days=2),
                total_revenue=4200.0,
                total_cost=800.0,
                roi=calculate_roi(4200.0, 800.0),
            ),
            Campaign(
                user_id=user_id,
                name="Loyalty Program Invitation",
                type="whatsapp",
                status="draft",
                target_audience="Loyal Customers",
                message_template="Hey {{customer_name}}! 🎉 You're invited to our exclusive loyalty program. Enjoy VIP benefits!",
                schedule_type="scheduled",
                scheduled_time=now + timedelta(days=1),
                audience_count=share(0.3),
                ctr=0.0,
                total_revenue=0.0,
                total_cost=0.0,
                roi=0.0,
            ),
        ]

    def _seed_logs(self, user_id: int, campaign: Campaign, customers, now: datetime) -> int:
        recipients = customers[:campaign.sent_count or 0]
        for customer in recipients:
            sent_at = now - timedelta(days=self.rng.random() * 7)
            self.db.add(CampaignLog(
                user_id=user_id,
                campaign_id=campaign.id,
                campaign_name=campaign.name,
                customer_id=customer.id,
                channel=campaign.type,
                recipient_phone=customer.phone if campaign.type == "whatsapp" else None,
                recipient_email=customer.email if campaign.type == "email" else None,
                message_content=campaign.message_template,
                status="sent",
                sent_at=sent_at,
                delivered_at=sent_at + timedelta(minutes=self.rng.randint(1, 60)),
            ))
        return len(recipients)
