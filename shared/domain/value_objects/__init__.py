"""Shared value objects."""
from .pagination import PageRequest, PageResponse, SORT_ASC, SORT_DESC

__all__ = [
    "PageRequest",
    "PageResponse",
    "SORT_ASC",
    "SORT_DESC",
]
