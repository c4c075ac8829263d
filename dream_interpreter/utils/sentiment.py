# dream_interpreter/utils/sentiment.py
import logging
import threading

from transformers import pipeline

logger = logging.getLogger(__name__)

DEFAULT_SENTIMENT_MODEL = "distilbert-base-uncased-finetuned-sst-2-english"

# Model - lazy load, shared by every request in the process
_sentiment = None
_loading = False
_lock = threading.Lock()


def initialize_models(model_name=DEFAULT_SENTIMENT_MODEL):
    """Load the sentiment pipeline once. Concurrent callers return while a load is in flight."""
    global _sentiment, _loading
    with _lock:
        if _sentiment is not None or _loading:
            return
        _loading = True

    logger.info("Loading sentiment model %s ...", model_name)
    try:
        pipe = pipeline("sentiment-analysis", model=model_name)
    except Exception:
        logger.exception("Failed to load sentiment model %s", model_name)
        raise
    finally:
        with _lock:
            _loading = False

    with _lock:
        _sentiment = pipe
    logger.info("Sentiment model loaded successfully")


def _initialize_quietly(model_name):
    try:
        initialize_models(model_name)
    except Exception:
        # already logged; the next request retries the load
        pass


def load_models_in_background(model_name=DEFAULT_SENTIMENT_MODEL):
    """Start loading on a daemon thread unless the model is ready or already loading."""
    if models_ready() or models_loading():
        return None
    thread = threading.Thread(target=_initialize_quietly, args=(model_name,), name="sentiment-loader", daemon=True)
    thread.start()
    return thread


def models_ready():
    return _sentiment is not None


def models_loading():
    return _loading


def get_sentiment_pipeline():
    return _sentiment


def analyze_sentiment(text):
    """
    Run the sentiment pipeline on `text`.
    Returns {"label": "POSITIVE" | "NEGATIVE", "score": float}.
    Raises RuntimeError if the model is not loaded; pipeline errors propagate.
    """
    pipe = get_sentiment_pipeline()
    if pipe is None:
        raise RuntimeError("Sentiment model is not loaded")

    res = pipe(text, truncation=True)
    top = res[0] if isinstance(res, list) else res
    label = "POSITIVE" if str(top.get("label", "")).upper() == "POSITIVE" else "NEGATIVE"
    return {"label": label, "score": float(top.get("score", 0.0))}
