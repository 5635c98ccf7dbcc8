"""
Message template personalization

Templates use ``{{variable_name}}`` placeholders. Names are case-sensitive;
a placeholder outside the known set is left in the output as written.
"""
import html
import re
from typing import Any, Dict, Optional

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_CUSTOMER_NAME = "Valued Customer"

COUNTRY_NAMES = {
    'US': 'United States', 'GB': 'United Kingdom', 'CA': 'Canada', 'IN': 'India',
    'CN': 'China', 'JP': 'Japan', 'DE': 'Germany', 'FR': 'France', 'BR': 'Brazil',
    'AU': 'Australia', 'IT': 'Italy', 'ES': 'Spain', 'NL': 'Netherlands',
    'KR': 'South Korea', 'SG': 'Singapore', 'MX': 'Mexico', 'RU': 'Russia',
}

WHATSAPP_FOOTER = "Reply STOP to opt out from future messages."
EMAIL_FOOTER_LINES = (
    "You received this email because you're a valued customer.",
    'If you no longer wish to receive these emails, please reply with "UNSUBSCRIBE" to opt out.',
)


def _field(customer: Any, name: str):
    if isinstance(customer, dict):
        return customer.get(name)
    return getattr(customer, name, None)


def format_amount(value) -> str:
    """Dollar amount without a trailing .0 for whole numbers ($500, $12.50)"""
    amount = float(value or 0)
    if amount.is_integer():
        return f"${int(amount)}"
    return f"${amount:.2f}"


def country_name(code: Optional[str]) -> str:
    if not code:
        return ""
    return COUNTRY_NAMES.get(code.upper(), code)


def customer_variables(customer: Any, company_name: str = "Your Company") -> Dict[str, str]:
    """Values for every known placeholder, derived from a customer row or dict"""
    city = _field(customer, "city") or ""
    country = country_name(_field(customer, "country"))
    if city and country:
        location = f"{city}, {country}"
    else:
        location = _field(customer, "location") or ""

    return {
        "customer_name": _field(customer, "full_name") or DEFAULT_CUSTOMER_NAME,
        "company_name": company_name,
        "location": location,
        "country": country,
        "city": city,
        "total_spent": format_amount(_field(customer, "total_spent")),
        "campaigns_accepted": str(_field(customer, "campaigns_accepted") or 0),
    }


def render_template(template: str, variables: Dict[str, str]) -> str:
    """Substitute known placeholders; unknown ones pass through untouched."""
    def _replace(match: "re.Match") -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def personalize_message(template: str, customer: Any, company_name: str = "Your Company") -> str:
    return render_template(template, customer_variables(customer, company_name))


def whatsapp_body(message: str) -> str:
    return f"{message}\n\n{WHATSAPP_FOOTER}"


def email_text_body(message: str) -> str:
    return message + "\n\n" + "\n".join(EMAIL_FOOTER_LINES)


def email_html_body(message: str) -> str:
    """HTML email body with the unsubscribe footer"""
    body = html.escape(message).replace("\n", "<br>")
    footer = "".join(f"<p>{html.escape(line)}</p>" for line in EMAIL_FOOTER_LINES)
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        f"<div style=\"white-space: pre-line; margin-bottom: 30px;\">{body}</div>"
        "<hr style=\"border: none; border-top: 1px solid #eee; margin: 20px 0;\">"
        f"<div style=\"font-size: 12px; color: #666; text-align: center;\">{footer}</div>"
        "</div>"
    )


def format_phone_e164(phone: str) -> str:
    """Normalize a phone number to E.164, assuming US (+1) for bare 10-digit numbers"""
    raw = (phone or "").strip()
    digits = re.sub(r"\D", "", raw)
    if not digits:
        return ""
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"
