"""Natural-language transaction parser.

Turns short phrases such as ``"spent $50 on groceries yesterday"`` into a
:class:`ParsedTransaction`.  This is a fixed, ordered keyword/regex
pipeline; each stage runs on the lowercased input:

1. type detection      - keyword sets, with weak fallbacks
2. amount extraction   - currency patterns in priority order
3. category extraction - taxonomy keyword table
4. date extraction     - relative words, month names, numeric dates
5. description         - the input minus filler words and amounts
6. confidence score

Only a missing type or amount rejects the input; every other stage has a
fallback value.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, timedelta
from typing import List, Optional

from .models import ParsedTransaction
from .taxonomy import DEFAULT_EXPENSE_CATEGORY, match_category

logger = logging.getLogger(__name__)

EXPENSE_KEYWORDS = [
    'spent', 'paid', 'bought', 'purchased', 'cost', 'charged',
    'expense', 'bill', 'payment', 'subscription', 'fee',
]
INCOME_KEYWORDS = [
    'received', 'earned', 'got', 'income', 'salary', 'wage',
    'payment from', 'refund', 'bonus', 'commission', 'dividend',
]

_NUMBER = r'([\d,]+(?:\.\d{2})?)'
AMOUNT_PATTERNS: List[re.Pattern] = [
    re.compile(r'\$\s*' + _NUMBER),
    re.compile(_NUMBER + r'\s*\$'),
    re.compile(_NUMBER + r'\s*(?:dollars?|usd|bucks)'),
    re.compile(r'(?:spent|paid|received|got|earned)\s*\$?\s*' + _NUMBER),
    re.compile(_NUMBER + r'\s*(?:for|on)'),
]
ANY_NUMBER_PATTERN = re.compile(r'(\d+(?:\.\d{2})?)')

MONTH_NAMES = [
    'january', 'february', 'march', 'april', 'may', 'june',
    'july', 'august', 'september', 'october', 'november', 'december',
]
_MONTH_ALTERNATION = '|'.join(MONTH_NAMES + [name[:3] for name in MONTH_NAMES if name != 'may'])
MONTH_DAY_PATTERN = re.compile(
    r'\b(' + _MONTH_ALTERNATION + r')\s+(\d{1,2})(?:st|nd|rd|th)?\b(?:\s*,?\s*(\d{4})\b)?'
)
NUMERIC_DATE_PATTERN = re.compile(r'(\d{1,2})[/\-](\d{1,2})(?:[/\-](\d{2,4}))?')

FILLER_WORDS_PATTERN = re.compile(r'\b(?:spent|paid|received|got|earned|bought|for|on|at|from)\b')
CURRENCY_AMOUNT_PATTERNS = [
    re.compile(r'\$\s*[\d,.]+'),
    re.compile(r'[\d,.]*\d\s*\$'),
    re.compile(r'[\d,.]*\d\s*(?:dollars?|usd|bucks)\b'),
]


def parse_natural_language(text: str, today: Optional[date] = None) -> Optional[ParsedTransaction]:
    """Parse a phrase into a transaction draft, or None when it is unparseable."""
    today = today or date.today()
    normalized = text.lower().strip()

    transaction_type = detect_type(normalized)
    if transaction_type is None:
        logger.debug("Rejected %r: no transaction type", text)
        return None

    amount = extract_amount(normalized)
    if amount is None:
        logger.debug("Rejected %r: no amount", text)
        return None

    category = extract_category(normalized)
    when = extract_date(normalized, today)
    description = extract_description(normalized, category)

    return ParsedTransaction(
        type=transaction_type,
        amount=amount,
        category=category,
        description=description,
        date=when,
        confidence=confidence_score(amount, category, when, today),
        raw_input=text,
    )


def detect_type(text: str) -> Optional[str]:
    has_expense = any(keyword in text for keyword in EXPENSE_KEYWORDS)
    has_income = any(keyword in text for keyword in INCOME_KEYWORDS)

    if has_expense:
        # ambiguous phrases count as expenses
        return 'expense'
    if has_income:
        return 'income'

    if 'from' in text:
        return 'income'
    if 'on' in text or 'for' in text:
        return 'expense'
    return None


def _to_amount(raw: str) -> Optional[float]:
    try:
        value = float(raw.replace(',', ''))
    except ValueError:
        return None
    if math.isfinite(value) and value > 0:
        return value
    return None


def extract_amount(text: str) -> Optional[float]:
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            value = _to_amount(match.group(1))
            if value is not None:
                return value

    match = ANY_NUMBER_PATTERN.search(text)
    if match:
        return _to_amount(match.group(1))
    return None


def extract_category(text: str) -> str:
    return match_category(text) or DEFAULT_EXPENSE_CATEGORY


def _month_index(name: str) -> int:
    for index, month in enumerate(MONTH_NAMES):
        if name == month or name == month[:3]:
            return index + 1
    return 0


def extract_date(text: str, today: Optional[date] = None) -> date:
    today = today or date.today()

    if 'today' in text:
        return today
    if 'yesterday' in text:
        return today - timedelta(days=1)
    if 'last week' in text:
        return today - timedelta(days=7)

    for match in MONTH_DAY_PATTERN.finditer(text):
        month = _month_index(match.group(1))
        day = int(match.group(2))
        year = int(match.group(3)) if match.group(3) else today.year
        try:
            return date(year, month, day)
        except ValueError:
            continue

    match = NUMERIC_DATE_PATTERN.search(text)
    if match:
        month, day = int(match.group(1)), int(match.group(2))
        year = int(match.group(3)) if match.group(3) else today.year
        if year < 100:
            year += 2000
        try:
            return date(year, month, day)
        except ValueError:
            pass

    return today


def extract_description(text: str, category: str) -> str:
    description = FILLER_WORDS_PATTERN.sub('', text)
    for pattern in CURRENCY_AMOUNT_PATTERNS:
        description = pattern.sub('', description)
    description = re.sub(r'\s+', ' ', description).strip()
    if not description:
        return category
    return description[0].upper() + description[1:]


def confidence_score(amount: Optional[float], category: str, when: date, today: date) -> float:
    confidence = 0.5
    if amount is not None and amount > 0:
        confidence += 0.2
    if category != DEFAULT_EXPENSE_CATEGORY:
        confidence += 0.2
    if when != today:
        confidence += 0.1
    return round(min(1.0, confidence), 2)
