from flask import Blueprint, current_app, request, jsonify
from afinn import Afinn
import re
from validators import json_body


"""
-----------------------Over here in this file the comment sentiment check is done
fully offline: the AFINN word list scores the text and a small substitution
table proposes a softer rephrasing. No API key or network is needed.

"""

sentiment_bp = Blueprint('sentiment', __name__)#Blueprint registered here to be registered in app.py

# Word list is loaded once at import
scorer = Afinn(language='en')

# Substitution tables, applied top to bottom. Order matters: "worst" and "hate"
# are consumed by the first rule before the later ones see them.
NEGATIVE_REWRITES = [
    (re.compile(r'\b(bad|poor|worst|hate|angry|awful)\b', re.IGNORECASE), "not great"),
    (re.compile(r'\b(stupid|useless|terrible|annoying|worst)\b', re.IGNORECASE), "less ideal"),
    (re.compile(r'\b(ugly|disgusting|hate)\b', re.IGNORECASE), "unpleasant"),
    (re.compile(r'!+'), "."),
]
POSITIVE_REWRITES = [
    (re.compile(r'\b(good|nice|great|excellent|love)\b', re.IGNORECASE), "wonderful"),
]

NEGATIVE_PREFIX = "I felt this could be improved — "
POSITIVE_PREFIX = "Overall, this seems quite positive — "
NEUTRAL_PREFIX = "In general, "


# A word right after one of these counts with its sign flipped ("not good" < 0)
NEGATORS = {
    "cant", "can't", "dont", "don't", "doesnt", "doesn't", "not", "non",
    "wont", "won't", "isnt", "isn't",
}

# Apostrophes survive so that "don't" stays one token
PUNCTUATION_RE = re.compile(r'[.,\/#!?$%^&*;:{}=_`"~()]')


def tokenize(text):
    return PUNCTUATION_RE.sub(' ', text.lower()).split()


def score_text(text):
    """Sum of the AFINN valences of the words in text, negation-aware."""
    total = 0
    previous = None
    for token in tokenize(text):
        valence = scorer.score(token)
        if previous in NEGATORS:
            valence = -valence
        total += valence
        previous = token
    return total


def label_for(score, threshold=1):
    if score > threshold:
        return "positive"
    if score < -threshold:
        return "negative"
    return "neutral"


def _apply(rewrites, text):
    for pattern, replacement in rewrites:
        text = pattern.sub(replacement, text)
    return text


def analyze_and_rephrase(text, threshold=1):
    """
    Analyzes sentiment and rephrases a given text.
    Returns a dict: {"sentiment": "positive|negative|neutral", "rephrased": str}
    """
    if not text or not text.strip():
        return {"sentiment": "neutral", "rephrased": ""}

    sentiment = label_for(score_text(text), threshold)

    if sentiment == "negative":
        rephrased = NEGATIVE_PREFIX + _apply(NEGATIVE_REWRITES, text)
    elif sentiment == "positive":
        rephrased = POSITIVE_PREFIX + _apply(POSITIVE_REWRITES, text)
    else:
        rephrased = NEUTRAL_PREFIX + text

    return {"sentiment": sentiment, "rephrased": rephrased}


def check_comment(text):
    """analyze_and_rephrase with the threshold taken from the app config."""
    return analyze_and_rephrase(text, current_app.config.get('SENTIMENT_THRESHOLD', 1))


@sentiment_bp.route('/sentiment', methods=['POST'])
def sentiment_check():
    """Lets the frontend pre-check a comment before it is submitted."""
    data = json_body(request)
    text = data.get('text')
    if not isinstance(text, str):
        return jsonify({"errors": [{"msg": "Text is required", "path": "text", "location": "body"}]}), 400

    return jsonify(check_comment(text))
