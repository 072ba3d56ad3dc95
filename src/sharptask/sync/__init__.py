"""Markdown <-> task store sync package."""

from .engine import MD_TO_TC, TC_TO_MD, SyncEngine
from .mapper import AttributeMapper, priority_to_document
from .resolver import IdentityResolver, Resolution
from .rewriter import DocumentRewriter

__all__ = [
    "MD_TO_TC",
    "TC_TO_MD",
    "AttributeMapper",
    "DocumentRewriter",
    "IdentityResolver",
    "Resolution",
    "SyncEngine",
    "priority_to_document",
]
