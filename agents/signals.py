"""
Per-turn text signals used to score debates.

These are cheap, deterministic heuristics over a turn's text:

    argument_strength()    0-100 quality score (data, logic, risk, catalysts)
    extract_data_points()  which market metrics the turn cites
    mentions_risk()        does the turn acknowledge downside
    mentions_catalyst()    does the turn name a catalyst

The debate engine applies them to any turn whose producer did not supply
its own strength or data points.
"""

from __future__ import annotations

import re

from agents.base import Methodology

_I = re.IGNORECASE

# (label, pattern) in display order; each label is reported at most once.
_DATA_POINT_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    # Valuation
    ("P/E Ratio", re.compile(r"P/E|PE ratio|price.to.earnings", _I)),
    ("P/B Ratio", re.compile(r"P/B|price.to.book", _I)),
    ("EV/EBITDA", re.compile(r"EV/EBITDA|enterprise value", _I)),
    ("PEG Ratio", re.compile(r"PEG ratio", _I)),
    ("Free Cash Flow", re.compile(r"FCF|free cash flow", _I)),
    # Growth
    ("Revenue Growth", re.compile(r"revenue growth|sales growth", _I)),
    ("Earnings Growth", re.compile(r"earnings growth|EPS growth", _I)),
    ("Margins", re.compile(r"margin|profitability", _I)),
    # Technicals
    ("RSI", re.compile(r"RSI|relative strength", _I)),
    ("MACD", re.compile(r"MACD", _I)),
    ("Moving Averages", re.compile(r"moving average|SMA|EMA|50.day|200.day", _I)),
    ("Support/Resistance", re.compile(r"support|resistance", _I)),
    ("Volume", re.compile(r"volume", _I)),
    ("Bollinger Bands", re.compile(r"bollinger", _I)),
    # Sentiment
    ("Sentiment", re.compile(r"sentiment|news|headlines", _I)),
    ("Analyst Ratings", re.compile(r"analyst|rating|upgrade|downgrade", _I)),
    ("Short Interest", re.compile(r"short interest|shorts", _I)),
    # Financial health
    ("Debt Levels", re.compile(r"debt|leverage|D/E", _I)),
    ("ROE", re.compile(r"ROE|return on equity", _I)),
    ("Cash Position", re.compile(r"cash|liquidity", _I)),
]

_METHODOLOGY_VOCABULARY: dict[Methodology, re.Pattern[str]] = {
    Methodology.VALUE: re.compile(r"intrinsic|moat|safety|undervalued|cash flow", _I),
    Methodology.GROWTH: re.compile(r"TAM|acceleration|scaling|innovation|recurring", _I),
    Methodology.TECHNICAL: re.compile(r"trend|support|resistance|volume|breakout|MA|RSI", _I),
    Methodology.MACRO: re.compile(r"cycle|fed|interest rates|inflation|liquidity|policy", _I),
    Methodology.SENTIMENT: re.compile(r"narrative|fomo|crowd|social volume|fear|greed", _I),
    Methodology.RISK: re.compile(r"leverage|protection|drawdown|worst-case|limit", _I),
    Methodology.QUANT: re.compile(r"factor|statistically|probability|backtest|standard deviation", _I),
    Methodology.CONTRARIAN: re.compile(r"consensus|crowded|priced in|overlooked|mispriced", _I),
}

_PERCENT = re.compile(r"\d+\.?\d*%")
_DOLLARS = re.compile(r"\$\d+\.?\d*[BMK]?", _I)
_MULTIPLE = re.compile(r"\d+\.?\d*x", _I)
_RATIO_NAMES = re.compile(r"P/E|P/B|EV/|ROE|ROA", _I)
_FIGURES = re.compile(r"\d+\.?\d*%|\$\d+")

_CAUSAL = re.compile(r"because|therefore|thus|consequently|as a result", _I)
_NUANCE = re.compile(r"however|although|while|despite|nevertheless|on the other hand", _I)
_CONDITIONAL = re.compile(r"if.*then|assuming|given that|provided that", _I)
_COMPARATIVE = re.compile(r"compared to|relative to|versus|vs\.|higher than|lower than", _I)
_STRUCTURED = re.compile(r"first|second|third|finally|moreover|additionally", _I)

_RISK_TERMS = re.compile(r"risk|downside|concern|challenge|threat|weakness", _I)
_UNCERTAINTY = re.compile(r"could fail|might not|uncertain|volatile", _I)
_WORST_CASE = re.compile(r"worst case|bear case|if wrong", _I)
_RISK_ACKNOWLEDGED = re.compile(r"risk|concern|however|although|downside|challenge", _I)

_CATALYST_TERMS = re.compile(r"catalyst|trigger|upcoming|Q[1-4]|earnings|announcement", _I)
_TIMELINE = re.compile(r"timeline|within \d+ months|by year end|near term", _I)
_INFLECTION = re.compile(r"inflection point|turning point|breakout", _I)
_CATALYST_MENTIONED = re.compile(r"catalyst|trigger|Q[1-4]|earnings|announcement|upcoming|near.term", _I)

_HEDGING = re.compile(r"maybe|perhaps|possibly|might|could be", _I)
_FILLER = re.compile(r"obviously|clearly|everyone knows|it's clear that", _I)

_BASE_STRENGTH = 40.0


def extract_data_points(content: str) -> list[str]:
    """Return the market metrics a turn refers to, in a stable order."""
    if not content:
        return []
    return [label for label, pattern in _DATA_POINT_PATTERNS if pattern.search(content)]


def mentions_risk(content: str) -> bool:
    return bool(content) and bool(_RISK_ACKNOWLEDGED.search(content))


def mentions_catalyst(content: str) -> bool:
    return bool(content) and bool(_CATALYST_MENTIONED.search(content))


def count_figures(content: str) -> int:
    """Number of percentages and dollar figures quoted in the text."""
    return len(_FIGURES.findall(content or ""))


def is_causal(content: str) -> bool:
    return bool(content) and bool(_CAUSAL.search(content))


def argument_strength(content: str, methodology: Methodology | str = Methodology.VALUE) -> float:
    """
    Score a turn's argument quality on a 0-100 scale.

    Starts from a base of 40 and adds points for:
        data quality         up to +25 (percentages, dollar figures, multiples, ratios)
        methodology fit      +10 when the turn uses its own school's vocabulary
        logic & structure    up to +20 (causal, nuance, conditional, comparative, ordered)
        risk acknowledgment  up to +10
        catalysts            up to +10
        length               up to +5
    and subtracts for very short, vague, or filler-heavy text.
    """
    if not content or not isinstance(content, str):
        return 50.0

    score = _BASE_STRENGTH

    # Data quality
    score += min(10, len(_PERCENT.findall(content)) * 3)
    score += min(8, len(_DOLLARS.findall(content)) * 2)
    if _MULTIPLE.search(content):
        score += 3
    if _RATIO_NAMES.search(content):
        score += 4

    # Methodology fit
    try:
        vocabulary = _METHODOLOGY_VOCABULARY.get(Methodology(methodology))
    except ValueError:
        vocabulary = None
    if vocabulary is not None and vocabulary.search(content):
        score += 10

    # Logic & structure
    if _CAUSAL.search(content):
        score += 5
    if _NUANCE.search(content):
        score += 5
    if _CONDITIONAL.search(content):
        score += 3
    if _COMPARATIVE.search(content):
        score += 4
    if _STRUCTURED.search(content):
        score += 3

    # Risk acknowledgment
    if _RISK_TERMS.search(content):
        score += 5
    if _UNCERTAINTY.search(content):
        score += 3
    if _WORST_CASE.search(content):
        score += 2

    # Catalysts
    if _CATALYST_TERMS.search(content):
        score += 5
    if _TIMELINE.search(content):
        score += 3
    if _INFLECTION.search(content):
        score += 2

    # Penalties
    if len(content) < 50:
        score -= 10
    if _HEDGING.search(content) and not _FIGURES.search(content):
        score -= 5
    if _FILLER.search(content):
        score -= 3

    # Length
    if len(content) > 100:
        score += 2
    if len(content) > 150:
        score += 2
    if len(content) > 200:
        score += 1

    return float(min(100.0, max(0.0, score)))
