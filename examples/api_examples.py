"""
Example usage of the campaign dashboard API
"""
import requests

BASE_URL = "http://localhost:8000"

session = requests.Session()


def login(email: str, password: str):
    """Log in; the session cookie is kept on the requests session"""
    response = session.post(f"{BASE_URL}/auth/login", json={"email": email, "password": password})
    response.raise_for_status()
    print("Logged in as", response.json()["user"]["email"])


def seed_example():
    """Example: Seed demo data and read the dashboard summary"""
    print("\n" + "="*60)
    print("EXAMPLE 1: Seed and Summarize")
    print("="*60)

    seeded = session.post(f"{BASE_URL}/sample-data/seed").json()
    print("Seeded:", seeded["data"])

    summary = session.get(f"{BASE_URL}/analytics/summary").json()["data"]
    print(f"\nCustomers: {summary['total_customers']}")
    print(f"Revenue:   ${summary['total_revenue']:.2f}")
    print(f"ROI:       {summary['roi']:.1f}%")
    print(f"Sentiment: {summary['sentiment']}")


def ab_test_example():
    """Example: Run an A/B test on a new campaign"""
    print("\n" + "="*60)
    print("EXAMPLE 2: A/B Test")
    print("="*60)

    campaign = session.post(f"{BASE_URL}/campaigns", json={
        "name": "Spring Promo",
        "message_template": "Hi {{customer_name}}, spring sale starts today!",
    }).json()["data"]

    test = session.post(f"{BASE_URL}/ab-tests", json={
        "campaign_id": campaign["id"],
        "name": "Tone test",
        "templates": [
            "Hi {{customer_name}}, spring sale starts today!",
            "🌸 {{customer_name}}, 20% off everything this week only!",
        ],
    }).json()["data"]

    response = session.post(f"{BASE_URL}/ab-tests/{test['id']}/start")
    if response.status_code == 200:
        result = response.json()["data"]
        print(f"Assigned: {result['assignments']}")
        print(f"Winner:   {result['winner_variation']} ({result['confidence_level']}% confidence)")
        for variation in result["test"]["variations"]:
            print(f"  {variation['variation_name']}: CTR {variation['ctr']}%, "
                  f"conversion {variation['conversion_rate']}%")
    else:
        print(f"Error: {response.status_code} - {response.text}")


def send_example():
    """Example: Send a WhatsApp message to every eligible customer"""
    print("\n" + "="*60)
    print("EXAMPLE 3: WhatsApp Send")
    print("="*60)

    response = session.post(f"{BASE_URL}/messaging/whatsapp", json={
        "campaign_name": "Flash Sale",
        "message_template": "Hi {{customer_name}}! You've spent {{total_spent}} with us. Here's 25% off: FLASH25",
        "send_to_all": True,
    })
    print(response.json().get("message") or response.text)


def assistant_example():
    """Example: Ask the marketing assistant"""
    print("\n" + "="*60)
    print("EXAMPLE 4: Marketing Assistant")
    print("="*60)

    status = session.get(f"{BASE_URL}/llm/status").json()
    print("LLM Status:", status)

    answer = session.post(f"{BASE_URL}/llm/chat", json={"message": "How can I improve my campaign ROI?"}).json()
    print(f"\n[{answer['source']}] {answer['response']}")


if __name__ == "__main__":
    login("admin@example.com", "change-me-please")
    seed_example()
    ab_test_example()
    send_example()
    assistant_example()
