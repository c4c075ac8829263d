# dream_interpreter/utils/keywords.py
import logging
import re

from keybert import KeyBERT

logger = logging.getLogger(__name__)

_kw_model = None

STOP_WORDS = frozenset("""
    about above after again against also almost along already although always among another
    anyone anything around away back because been before being below between both came come
    could didn doesn doing done down during each either else even ever every everyone everything
    from front further getting going gone have having here herself himself into itself just know
    like made make many maybe more most much myself never next nothing once only other ours
    ourselves over really same seemed seems should since some something somehow someone still
    such suddenly than that their theirs them themselves then there these they thing things
    think this those though through thought together toward towards under until upon very want
    wanted were what whatever when where whether which while whole whom whose will with within
    without would your yours yourself yourselves dream dreamed dreamt dreaming
""".split())


def get_keybert():
    global _kw_model
    if _kw_model is None:
        try:
            _kw_model = KeyBERT()
        except Exception:
            logger.exception("KeyBERT load failed")
            _kw_model = None
    return _kw_model


def frequent_words(text, top_n=5):
    """Words of four or more letters, stop-words removed, ranked by frequency then first appearance."""
    words = re.findall(r"\b[a-z]{4,}\b", str(text).lower())
    freq = {}
    for w in words:
        if w in STOP_WORDS:
            continue
        freq[w] = freq.get(w, 0) + 1
    # dicts keep insertion order, so sorted() is stable on first appearance
    return [w for w, _ in sorted(freq.items(), key=lambda kv: kv[1], reverse=True)[:top_n]]


def extract_keywords(text, top_n=5, use_model=False):
    if not text or not str(text).strip():
        return []
    kw = get_keybert() if use_model else None
    if not kw:
        return frequent_words(text, top_n=top_n)
    try:
        kws = kw.extract_keywords(text, keyphrase_ngram_range=(1, 2), stop_words="english",
                                  top_n=top_n, use_mmr=True, diversity=0.6)
        return [k[0] for k in kws]
    except Exception:
        logger.exception("KeyBERT keyword extraction failed, using word frequency")
        return frequent_words(text, top_n=top_n)
