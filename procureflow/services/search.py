"""
Catalog search

Token-matching filter shared by the REST API and the assistant's
searchProducts tool. Every query token must appear in the product's
normalized name/description/category; a trailing "s" is forgiven.
"""

import re
from typing import Optional, Sequence

from ..models.product import Product

STOPWORDS = frozenset({
    "show",
    "me",
    "find",
    "finds",
    "please",
    "items",
    "item",
    "matching",
    "the",
    "a",
    "an",
    "for",
})

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(value: Optional[str]) -> str:
    """Lowercase, collapse non-alphanumeric runs to one space, trim"""
    return _NON_ALNUM.sub(" ", (value or "").lower()).strip()


def tokenize(query: Optional[str]) -> list[str]:
    """Split a query into searchable tokens, dropping stopwords"""
    return [t for t in normalize(query).split(" ") if t and t not in STOPWORDS]


def haystack(product: Product) -> str:
    fields = [product.name, product.description, product.category]
    return normalize(" ".join(f for f in fields if f))


def _token_matches(token: str, hay: str) -> bool:
    if token in hay:
        return True
    # naive plural: "cables" also matches "cable"
    return token.endswith("s") and token[:-1] in hay


def filter_products(products: Sequence[Product], query: Optional[str]) -> list[Product]:
    """
    Filter products by a free-text query.

    Returns:
        Matching products in catalog order; all products when the query
        has no tokens left after stopword removal.
    """
    tokens = tokenize(query)
    if not tokens:
        return list(products)

    return [
        p for p in products
        if all(_token_matches(tok, haystack(p)) for tok in tokens)
    ]
