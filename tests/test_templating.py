"""
Message personalization tests.

Guards against:
1. Unknown placeholders being dropped or mangled
2. Dollar amounts rendered with a trailing .0
3. Footers missing from outgoing bodies
"""
from app.utils.templating import (
    DEFAULT_CUSTOMER_NAME,
    WHATSAPP_FOOTER,
    customer_variables,
    email_html_body,
    email_text_body,
    format_amount,
    format_phone_e164,
    personalize_message,
    render_template,
    whatsapp_body,
)


# ---------------------------------------------------------------------------
# Placeholder substitution
# ---------------------------------------------------------------------------

def test_renders_name_and_total_spent():
    customer = {"full_name": "Ana Silva", "total_spent": 500}
    rendered = personalize_message("Hi {{customer_name}}, you've spent {{total_spent}}", customer)
    assert rendered == "Hi Ana Silva, you've spent $500"


def test_unknown_placeholder_passes_through():
    rendered = personalize_message("Hello {{customer_name}}, code {{promo_code}}", {"full_name": "Bo"})
    assert rendered == "Hello Bo, code {{promo_code}}"


def test_placeholders_are_case_sensitive():
    assert render_template("{{Customer_Name}}", {"customer_name": "x"}) == "{{Customer_Name}}"


def test_missing_name_uses_default():
    assert personalize_message("Hi {{customer_name}}", {"full_name": None}) == f"Hi {DEFAULT_CUSTOMER_NAME}"


def test_rendering_is_deterministic():
    customer = {"full_name": "Ana", "city": "Lisbon", "country": "PT", "total_spent": 12.5}
    template = "{{customer_name}} in {{location}} spent {{total_spent}}"
    assert personalize_message(template, customer) == personalize_message(template, customer)


def test_location_combines_city_and_country_name():
    variables = customer_variables({"city": "Paris", "country": "FR", "location": "ignored"})
    assert variables["location"] == "Paris, France"
    assert variables["country"] == "France"


def test_location_falls_back_to_location_field():
    variables = customer_variables({"location": "Chicago, IL"})
    assert variables["location"] == "Chicago, IL"


def test_company_name_substituted():
    assert personalize_message("From {{company_name}}", {}, "Acme") == "From Acme"


def test_works_with_orm_like_objects():
    class Row:
        full_name = "Obj Person"
        total_spent = 0
        campaigns_accepted = 3

    assert personalize_message("{{customer_name}} {{campaigns_accepted}}", Row()) == "Obj Person 3"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def test_format_amount():
    assert format_amount(500.0) == "$500"
    assert format_amount(12.5) == "$12.50"
    assert format_amount(None) == "$0"


def test_format_phone_e164():
    assert format_phone_e164("(555) 123-4567") == "+15551234567"
    assert format_phone_e164("+44 20 7946 0958") == "+442079460958"
    assert format_phone_e164("") == ""


# ---------------------------------------------------------------------------
# Footers
# ---------------------------------------------------------------------------

def test_whatsapp_body_appends_stop_footer():
    assert whatsapp_body("Hello").endswith(WHATSAPP_FOOTER)


def test_email_bodies_carry_unsubscribe_footer():
    assert "UNSUBSCRIBE" in email_text_body("Hello")
    html = email_html_body("Hello <b>you</b>\nline two")
    assert "UNSUBSCRIBE" in html
    assert "&lt;b&gt;" in html
    assert "<br>" in html
