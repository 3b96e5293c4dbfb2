"""Category taxonomy - default categories and parser keyword rules.

The keyword table is ordered: when a phrase matches keywords from several
categories, the first category listed wins.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .models import Category

DEFAULT_EXPENSE_CATEGORY = 'Other Expenses'
DEFAULT_INCOME_CATEGORY = 'Other Income'

# (id, name, type, icon, color)
DEFAULT_CATEGORY_ROWS: List[Tuple[str, str, str, str, str]] = [
    ('cat_food', 'Food & Dining', 'expense', '🍔', '#FF6B6B'),
    ('cat_transport', 'Transportation', 'expense', '🚗', '#4ECDC4'),
    ('cat_shopping', 'Shopping', 'expense', '🛍️', '#45B7D1'),
    ('cat_bills', 'Bills & Utilities', 'expense', '💡', '#96CEB4'),
    ('cat_entertainment', 'Entertainment', 'expense', '🎬', '#FFEAA7'),
    ('cat_health', 'Health & Fitness', 'expense', '💪', '#DDA0DD'),
    ('cat_education', 'Education', 'expense', '📚', '#98D8C8'),
    ('cat_personal', 'Personal Care', 'expense', '💄', '#F7DC6F'),
    ('cat_subscriptions', 'Subscriptions', 'expense', '📱', '#BB8FCE'),
    ('cat_other_exp', DEFAULT_EXPENSE_CATEGORY, 'expense', '📦', '#85C1E9'),
    ('cat_salary', 'Salary', 'income', '💰', '#2ECC71'),
    ('cat_freelance', 'Freelance', 'income', '💻', '#3498DB'),
    ('cat_investments', 'Investments', 'income', '📈', '#9B59B6'),
    ('cat_gifts', 'Gifts', 'income', '🎁', '#E74C3C'),
    ('cat_other_inc', DEFAULT_INCOME_CATEGORY, 'income', '💵', '#1ABC9C'),
]

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    'Food & Dining': [
        'food', 'groceries', 'grocery', 'restaurant', 'dinner', 'lunch',
        'breakfast', 'coffee', 'meal', 'eating', 'snack',
    ],
    'Transportation': [
        'uber', 'lyft', 'taxi', 'gas', 'fuel', 'bus', 'train', 'metro',
        'parking', 'car', 'transport', 'ride',
    ],
    'Shopping': ['shopping', 'clothes', 'clothing', 'amazon', 'store', 'mall', 'shoes', 'purchase'],
    'Bills & Utilities': [
        'bill', 'electricity', 'electric', 'water', 'internet', 'phone',
        'utility', 'utilities', 'rent', 'mortgage',
    ],
    'Entertainment': [
        'movie', 'netflix', 'spotify', 'gaming', 'concert', 'entertainment',
        'show', 'theater', 'music',
    ],
    'Health & Fitness': [
        'gym', 'health', 'medicine', 'doctor', 'pharmacy', 'fitness',
        'workout', 'medical', 'hospital',
    ],
    'Education': ['education', 'course', 'book', 'books', 'training', 'school', 'tuition', 'class'],
    'Subscriptions': ['subscription', 'monthly', 'premium', 'membership', 'annual'],
    'Salary': ['salary', 'wage', 'paycheck', 'pay'],
    'Freelance': ['freelance', 'gig', 'contract', 'client', 'project'],
    'Investments': ['dividend', 'interest', 'investment', 'stock', 'crypto'],
}


def default_categories() -> List[Category]:
    """Build fresh default category records."""
    return [
        Category(id=cid, name=name, type=ctype, icon=icon, color=color, is_default=True)
        for cid, name, ctype, icon, color in DEFAULT_CATEGORY_ROWS
    ]


def match_category(text: str) -> Optional[str]:
    """Return the first category whose keyword appears in ``text``.

    Matching is a case-insensitive substring test, so ``"grocery"`` also
    matches ``"groceryshop"``.
    """
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return None
