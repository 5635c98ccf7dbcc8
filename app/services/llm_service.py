"""
LLM Service for the marketing assistant
Chat answers grounded in the user's campaign metrics, and message variant drafting
"""
import json
import re
from typing import Dict, List, Optional

from anthropic import Anthropic

from app.config import get_settings
from app.utils.logger import log

settings = get_settings()

CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")

MAX_CHAT_MESSAGE_LENGTH = 5000


class LLMService:
    """
    Service for generating marketing answers and copy using Claude

    Every entry point degrades gracefully: without an API key, or when the
    API call fails, chat falls back to keyword-matched canned answers and
    variant generation returns None.
    """

    def __init__(self, client: Optional[Anthropic] = None):
        self.client = client
        self.enabled = bool(client) or bool(settings.enable_llm_insights and settings.anthropic_api_key)

        if self.enabled and self.client is None:
            try:
                self.client = Anthropic(api_key=settings.anthropic_api_key)
                log.info("LLM Service initialized with Claude")
            except Exception as e:
                log.error(f"Failed to initialize Anthropic client: {str(e)}")
                self.enabled = False
        elif not self.enabled:
            log.info("LLM assistant disabled (no API key or feature disabled)")

    def _complete(self, prompt: str, system: Optional[str] = None, max_tokens: Optional[int] = None) -> str:
        kwargs = {
            "model": settings.llm_model,
            "max_tokens": max_tokens or settings.llm_max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        response = self.client.messages.create(**kwargs)
        return response.content[0].text

    def answer_question(self, message: str, context: Dict) -> Dict:
        """
        Answer a marketing question using the user's business context

        Returns {"response": str, "source": "llm" | "fallback"}.
        """
        if not message or not message.strip():
            raise ValueError("Message cannot be empty")
        if len(message) > MAX_CHAT_MESSAGE_LENGTH:
            raise ValueError(f"Message must be less than {MAX_CHAT_MESSAGE_LENGTH} characters")

        if self.enabled:
            try:
                answer = self._complete(message, system=self._chat_system_prompt(context))
                log.info("Answered chat question via LLM")
                return {"response": answer, "source": "llm"}
            except Exception as e:
                log.error(f"LLM chat failed, using fallback: {str(e)}")

        return {"response": fallback_answer(message, context), "source": "fallback"}

    def _chat_system_prompt(self, context: Dict) -> str:
        sentiment = context.get("sentiment", {})
        top = ", ".join(f"{c['name']} (${c['spent']})" for c in context.get("top_customers", [])) or "None yet"
        return f"""You are an expert WhatsApp Marketing and A/B Testing Assistant with deep knowledge of marketing analytics, campaign optimization, and customer segmentation. Provide clear, actionable insights without markdown formatting.

CURRENT BUSINESS CONTEXT:
- Total Customers: {context.get('total_customers', 0)}
- Total Revenue: ${context.get('total_revenue', 0):.2f}
- ROI: {context.get('roi', 0):.1f}%
- Average CTR: {context.get('avg_ctr', 0):.1f}%
- Customer Sentiment: {sentiment.get('positive', 0)} positive, {sentiment.get('neutral', 0)} neutral, {sentiment.get('negative', 0)} negative
- Top Customers: {top}

RESPONSE GUIDELINES:
- Write in plain, conversational text without markdown or asterisks
- Be specific and data-driven when business metrics are available
- Keep responses under 200 words
- Use simple dashes (-) for lists if needed
- If asked about topics outside marketing, A/B testing, analytics or customer data, politely redirect

If the user has no data yet, guide them to sample data generation, campaign creation, or A/B testing setup."""

    def generate_variants(self, campaign: Dict, product: Optional[Dict] = None, count: int = 3) -> Optional[List[str]]:
        """
        Draft WhatsApp message variants for a campaign and product

        Returns None when the LLM is unavailable or the call fails.
        """
        if not self.enabled:
            return None

        product = product or {}
        prompt = f"""Generate {count} WhatsApp marketing message variants for this campaign and product:

Campaign: {campaign.get('name', 'Untitled')}
Target Audience: {campaign.get('target_audience', 'all')}

Product Details:
- Name: {product.get('name') or 'Not specified'}
- Description: {product.get('description') or 'Not specified'}
- Price: {product.get('price') or 'Not specified'}
- Key Features: {product.get('features') or 'Not specified'}
- Benefits: {product.get('benefits') or 'Not specified'}
- Special Offer: {product.get('offer') or 'Not specified'}

Instructions:
- Keep messages under 160 characters
- Use emojis appropriately
- Include a clear call-to-action
- Make each variant unique in tone and approach
- You may use the placeholders {{{{customer_name}}}} and {{{{company_name}}}}

Return ONLY JSON format: {{"variants": ["variant1", "variant2", "variant3"]}}"""

        try:
            raw = self._complete(prompt, max_tokens=1000)
        except Exception as e:
            log.error(f"Error generating variants: {str(e)}")
            return None

        variants = parse_variants(raw)
        log.info(f"Generated {len(variants)} message variants via LLM")
        return variants

    def is_available(self) -> bool:
        """Check if LLM service is available"""
        return bool(self.enabled)


def parse_variants(raw: str) -> List[str]:
    """Parse {"variants": [...]} from model output, tolerating a code fence; raw text otherwise."""
    cleaned = CODE_FENCE.sub("", (raw or "").strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        log.warning("Variant response was not valid JSON, returning raw content")
        return [raw.strip()] if raw and raw.strip() else []

    variants = data.get("variants") if isinstance(data, dict) else data
    if not isinstance(variants, list):
        return [raw.strip()]
    return [str(v).strip() for v in variants if str(v).strip()]


def fallback_answer(message: str, context: Dict) -> str:
    """Keyword-matched canned answer, personalized with whatever metrics exist"""
    text = message.lower()
    customers = context.get("total_customers", 0)
    revenue = context.get("total_revenue", 0.0)
    roi = context.get("roi", 0.0)
    avg_ctr = context.get("avg_ctr", 0.0)
    sentiment = context.get("sentiment", {})
    has_data = customers > 0

    if any(k in text for k in ("a/b test", "ab test", "a b test")):
        tail = (
            f"With your current {customers} customers you can run meaningful A/B tests. "
            "Try testing message tone, call-to-action phrases, or sending times."
            if has_data else "Generate sample data to start testing different campaign variations."
        )
        return (
            "A/B testing lets you compare message variations to find the best performer.\n\n"
            "- Create a test on a campaign with 2-3 message variations\n"
            "- Start it to split your eligible customers evenly across variations\n"
            "- Compare open, click and conversion rates; the top CTR is marked the winner\n"
            "- Test one variable at a time for clear insights\n\n" + tail
        )

    if any(k in text for k in ("roi", "revenue", "profit", "money")):
        summary = (
            f"Your revenue performance: ${revenue:.2f} total revenue with {roi:.1f}% ROI, "
            f"averaging ${revenue / customers:.2f} per customer."
            if has_data and revenue > 0 else
            "ROI optimization is key to marketing success. Track revenue and cost on each campaign to see it here."
        )
        return (
            summary + "\n\nOptimization strategies:\n"
            "- Replicate patterns from high-value customers\n"
            "- Use A/B testing to maximize conversion rates\n"
            "- Re-engage dormant customers with personalized win-back campaigns\n"
            "- Focus budget on the messages with the highest ROI"
        )

    if any(k in text for k in ("campaign", "performance", "marketing")):
        if has_data:
            quality = "indicates strong engagement" if avg_ctr > 5 else "suggests room for improvement in messaging or targeting"
            summary = (
                f"Your campaigns reach {customers} customers generating ${revenue:.2f} in revenue "
                f"with a {roi:.1f}% ROI. Your {avg_ctr:.1f}% average CTR {quality}."
            )
        else:
            summary = "You can create WhatsApp and email campaigns once you have customer data."
        return (
            summary + "\n\nTo improve performance:\n"
            "- Use A/B testing to optimize messaging\n"
            "- Personalize content with {{customer_name}} and purchase history\n"
            "- Segment customers by behavior and spending\n"
            "- Act on sentiment feedback"
        )

    if any(k in text for k in ("customer", "segment", "target")):
        if has_data:
            return (
                f"Your customer base of {customers} shows {sentiment.get('positive', 0)} positive, "
                f"{sentiment.get('neutral', 0)} neutral and {sentiment.get('negative', 0)} negative customers.\n\n"
                "Recommended segmentation:\n"
                "- VIP (high spenders): exclusive early access\n"
                "- Active (regular customers): loyalty rewards and bundles\n"
                "- At-risk (declining activity): win-back offers"
            )
        return "Customer segmentation helps you target the right audience. Add or generate customers to get started."

    if any(k in text for k in ("dataset", "data", "sample")):
        return (
            "Customer records include demographics, purchase behavior (wines, meats, fruits, gold products), "
            "campaign engagement and recency.\n\n"
            + (f"You currently have {customers} customers with ${revenue:.2f} total revenue."
               if has_data else "Use the sample data generator to create realistic customer profiles.")
        )

    stats = (
        f"Your current stats: {customers} customers, ${revenue:.2f} revenue, {roi:.1f}% ROI, "
        f"{avg_ctr:.1f}% CTR."
        if has_data else "You haven't added any customer data yet."
    )
    return (
        "I'm your assistant for WhatsApp marketing, A/B testing, customer analytics and campaign optimization.\n\n"
        + stats + "\n\nTry asking:\n"
        "- \"How do I set up an A/B test?\"\n"
        "- \"Which customers should I target?\"\n"
        "- \"How can I improve my campaign ROI?\""
    )
