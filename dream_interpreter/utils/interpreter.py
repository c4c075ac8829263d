# dream_interpreter/utils/interpreter.py
import logging
from typing import Any, Dict, List

from dream_interpreter.utils.keywords import extract_keywords
from dream_interpreter.utils.sentiment import analyze_sentiment
from dream_interpreter.utils.symbols import extract_symbols

logger = logging.getLogger(__name__)

POSITIVE_DESCRIPTION = "Your dream conveys positive emotions, suggesting feelings of hope, joy, or contentment."
NEGATIVE_DESCRIPTION = ("Your dream reflects more challenging emotions, possibly indicating stress, "
                        "anxiety, or unresolved concerns.")


def _plural(n):
    return "s" if n > 1 else ""


def format_confidence(score):
    return f"{score * 100:.1f}%"


def generate_interpretation(sentiment: str, symbols: List[Dict[str, Any]]) -> Dict[str, str]:
    """Templated interpretation, advice and summary for a sentiment label and its symbols."""
    positive = sentiment == "POSITIVE"
    sentiment_text = "positive and uplifting" if positive else "negative or concerning"
    symbols_list = ", ".join(s["symbol"] for s in symbols)

    ai_interpretation = (
        f"Your dream reflects a {sentiment_text} emotional tone. "
        f"The symbols present ({symbols_list}) suggest aspects of your subconscious mind are processing "
        "recent experiences or emotions. Dreams often serve as a way for our minds to work through thoughts "
        "and feelings that may not be fully processed during waking hours."
    )

    if positive:
        personalized_advice = (
            "Continue to embrace the positive energy this dream represents. Consider journaling about these "
            "symbols and how they might relate to recent positive changes in your life."
        )
    else:
        personalized_advice = (
            "This dream may be highlighting areas of concern or unresolved emotions. Take time to reflect on "
            "what might be causing stress or anxiety in your life, and consider speaking with someone you trust."
        )

    analysis_summary = (
        f"The dream contains {len(symbols)} key symbol{_plural(len(symbols))}, indicating "
        f"{'a favorable' if positive else 'a challenging'} period in your life. "
        "Pay attention to how these symbols relate to your current circumstances."
    )

    return {
        "ai_interpretation": ai_interpretation,
        "personalized_advice": personalized_advice,
        "analysis_summary": analysis_summary,
    }


def fallback_interpretation(symbols: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Neutral reflection texts used when the sentiment model cannot score the dream."""
    return {
        "emotional_tone": {
            "sentiment": "POSITIVE",
            "confidence": "50%",
            "description": ("Unable to analyze sentiment automatically. "
                            "Please consider your own feelings about this dream."),
        },
        "symbols_detected": symbols,
        "ai_interpretation": ("Dream interpretation requires careful reflection. Consider the symbols present "
                              "and how they relate to your current life circumstances."),
        "personalized_advice": "Take time to reflect on this dream and how its themes might connect to your waking life.",
        "analysis_summary": (f"Found {len(symbols)} symbol{_plural(len(symbols))} in your dream. "
                             "Reflect on their meaning in the context of your life."),
    }


def interpret_dream(text: str, symbol_dictionary=None, use_keyword_model=False) -> Dict[str, Any]:
    """
    Returns a dictionary with:
      - emotional_tone {sentiment, confidence, description}
      - symbols_detected
      - ai_interpretation / personalized_advice / analysis_summary
      - themes
    Model failures never raise; they produce the fallback interpretation.
    """
    symbols = extract_symbols(text, symbol_dictionary)

    try:
        themes = extract_keywords(text, top_n=5, use_model=use_keyword_model)
    except Exception:
        logger.exception("theme extraction error")
        themes = []

    try:
        scored = analyze_sentiment(text)
    except Exception:
        logger.exception("Dream interpretation error, using fallback interpretation")
        result = fallback_interpretation(symbols)
        result["themes"] = themes
        return result

    sentiment = scored["label"]
    result = {
        "emotional_tone": {
            "sentiment": sentiment,
            "confidence": format_confidence(scored["score"]),
            "description": POSITIVE_DESCRIPTION if sentiment == "POSITIVE" else NEGATIVE_DESCRIPTION,
        },
        "symbols_detected": symbols,
    }
    result.update(generate_interpretation(sentiment, symbols))
    result["themes"] = themes
    return result
