# dream_interpreter/utils/symbols.py
import logging
import re

import pandas as pd

logger = logging.getLogger(__name__)

SENTIMENTS = ("positive", "negative", "neutral")

COMMON_SYMBOLS = {
    "water": {"meaning": "Emotions, subconscious, cleansing", "sentiment": "neutral"},
    "fire": {"meaning": "Passion, transformation, anger", "sentiment": "positive"},
    "snake": {"meaning": "Transformation, hidden fears, healing", "sentiment": "negative"},
    "death": {"meaning": "Endings, transformation, new beginnings", "sentiment": "neutral"},
    "flying": {"meaning": "Freedom, liberation, escape", "sentiment": "positive"},
    "falling": {"meaning": "Loss of control, anxiety, insecurity", "sentiment": "negative"},
    "teeth": {"meaning": "Anxiety about appearance, communication issues", "sentiment": "negative"},
    "house": {"meaning": "Self, personal security, inner life", "sentiment": "neutral"},
    "car": {"meaning": "Life journey, personal drive, control", "sentiment": "neutral"},
    "baby": {"meaning": "New beginnings, innocence, vulnerability", "sentiment": "positive"},
    "animal": {"meaning": "Instincts, natural impulses, untamed aspects", "sentiment": "neutral"},
    "chase": {"meaning": "Running from problems, avoidance, fear", "sentiment": "negative"},
    "money": {"meaning": "Value, self-worth, security", "sentiment": "neutral"},
    "food": {"meaning": "Nourishment, satisfaction, emotional needs", "sentiment": "positive"},
    "school": {"meaning": "Learning, growth, evaluation", "sentiment": "neutral"},
}

FALLBACK_SYMBOL = {
    "symbol": "Life",
    "meaning": "General life experiences and emotions",
    "sentiment": "neutral",
}

MIN_SYMBOL_LENGTH = 3


def _first_sentence(s):
    s = str(s).strip()
    if not s:
        return ""
    return re.split(r"(?<=[.!?])\s+", s)[0]


def load_symbol_csv(csv_path):
    """
    Read extra symbols from a CSV with a `word`/`symbol` column and an optional
    `interpretation`/`meaning` and `sentiment` column.
    Returns {symbol: {"meaning", "sentiment"}}.
    """
    df = pd.read_csv(csv_path)
    # drop empty / unnamed columns, normalize names
    df = df.loc[:, ~df.columns.astype(str).str.contains("^Unnamed|^$", case=False)]
    df.columns = [str(c).strip().lower() for c in df.columns]

    word_col = "word" if "word" in df.columns else ("symbol" if "symbol" in df.columns else None)
    if word_col is None:
        raise ValueError("Symbol CSV missing a 'Word' or 'Symbol' column")
    interp_col = "interpretation" if "interpretation" in df.columns else ("meaning" if "meaning" in df.columns else None)

    df["word_clean"] = df[word_col].fillna("").astype(str).str.lower().str.strip()
    if interp_col is None:
        df["interp_first"] = ""
    else:
        df["interp_first"] = df[interp_col].fillna("").apply(_first_sentence)
    if "sentiment" in df.columns:
        df["sentiment_clean"] = df["sentiment"].fillna("").astype(str).str.lower().str.strip()
    else:
        df["sentiment_clean"] = "neutral"

    symbols = {}
    for _, row in df.iterrows():
        word = row["word_clean"]
        if len(word) < MIN_SYMBOL_LENGTH or word in symbols:
            continue
        sentiment = row["sentiment_clean"] if row["sentiment_clean"] in SENTIMENTS else "neutral"
        symbols[word] = {"meaning": row["interp_first"], "sentiment": sentiment}
    return symbols


def build_symbol_dictionary(csv_path=None):
    """Built-in symbols, extended with CSV entries. Built-in entries win on duplicates."""
    dictionary = dict(COMMON_SYMBOLS)
    if not csv_path:
        return dictionary
    try:
        extra = load_symbol_csv(csv_path)
    except Exception:
        logger.exception("Could not load symbol CSV %s, using built-in symbols only", csv_path)
        return dictionary
    for word, data in extra.items():
        dictionary.setdefault(word, data)
    logger.info("Symbol dictionary: %d built-in + %d from %s", len(COMMON_SYMBOLS), len(dictionary) - len(COMMON_SYMBOLS), csv_path)
    return dictionary


def extract_symbols(dream_text, dictionary=None):
    """
    Case-insensitive substring lookup of every dictionary symbol, in dictionary order.
    Never returns an empty list: no match yields the generic `Life` symbol.
    """
    if dictionary is None:
        dictionary = COMMON_SYMBOLS
    lower_text = str(dream_text).lower()

    detected = []
    for symbol, data in dictionary.items():
        if symbol in lower_text:
            detected.append({
                "symbol": symbol[:1].upper() + symbol[1:],
                "meaning": data.get("meaning", ""),
                "sentiment": data.get("sentiment", "neutral"),
            })

    if not detected:
        detected.append(dict(FALLBACK_SYMBOL))
    return detected
