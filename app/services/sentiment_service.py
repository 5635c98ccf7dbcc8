"""
Keyword sentiment for campaign copy and customer replies

Counts words containing a positive or negative stem. Not a language model;
good enough to flag obviously upbeat or hostile text.
"""
from typing import Dict

POSITIVE_WORDS = (
    'good', 'great', 'excellent', 'amazing', 'awesome', 'fantastic', 'wonderful', 'perfect',
    'love', 'like', 'happy', 'excited', 'best', 'incredible', 'outstanding', 'brilliant',
    'superb', 'discount', 'off', 'sale', 'free', 'bonus', 'reward', 'win', 'congratulations',
)

NEGATIVE_WORDS = (
    'bad', 'terrible', 'awful', 'horrible', 'hate', 'dislike', 'angry', 'frustrated', 'worst',
    'disgusting', 'annoying', 'disappointing', 'useless', 'broken', 'failed', 'problem',
    'issue', 'error', 'complaint', 'cancel',
)

BASE_CONFIDENCE = 0.6
MAX_CONFIDENCE = 0.9


def analyze_sentiment(text: str) -> Dict:
    if not text or not text.strip():
        raise ValueError("Text is required")

    positive = negative = 0
    for word in text.lower().split():
        if any(stem in word for stem in POSITIVE_WORDS):
            positive += 1
        if any(stem in word for stem in NEGATIVE_WORDS):
            negative += 1

    sentiment, confidence = "neutral", BASE_CONFIDENCE
    if positive != negative:
        sentiment = "positive" if positive > negative else "negative"
        confidence = min(MAX_CONFIDENCE, BASE_CONFIDENCE + abs(positive - negative) * 0.1)
    confidence = round(confidence, 2)

    return {
        "sentiment": sentiment,
        "confidence": confidence,
        "positive_matches": positive,
        "negative_matches": negative,
        "explanation": (
            f"Text classified as {sentiment} with {round(confidence * 100)}% confidence "
            "based on keyword analysis"
        ),
    }
