from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..core.exceptions import ValidationError
from .validators import parse_int

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "PageRequest":
        page = parse_int(args.get("page", DEFAULT_PAGE))
        limit = parse_int(args.get("limit", DEFAULT_PAGE_LIMIT))
        errors = []
        if page is None or page < 1:
            errors.append({"field": "page", "message": "Page must be a positive integer"})
        if limit is None or limit < 1:
            errors.append({"field": "limit", "message": "Limit must be a positive integer"})
        if errors:
            raise ValidationError("Invalid pagination", errors)
        return cls(page=page, limit=limit)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.limit)
