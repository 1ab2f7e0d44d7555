from typing import Optional

from .compiled_patterns import CompiledPatterns
from .transaction_type import Category


def categorize_transaction(merchant: Optional[str], body: Optional[str]) -> Category:
    """
    Classifies a transaction using the merchant and the message body together.
    The first keyword set in table order that matches wins.
    """
    combined = f"{merchant or ''} {body or ''}".lower()
    for category, pattern in CompiledPatterns.Categories.ALL_PATTERNS:
        if pattern.search(combined):
            return category
    return Category.OTHER
