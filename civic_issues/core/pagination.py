# File: civic_issues/core/pagination.py
import math
from typing import Any, Optional

from fastapi import Query


class PageParams:
    def __init__(self, page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100)):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_meta(total: int, params: PageParams) -> dict:
    total_pages = math.ceil(total / params.limit) if total else 0
    return {
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "total_pages": total_pages,
        "has_next_page": params.page < total_pages,
        "has_previous_page": params.page > 1,
    }


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def paginate(query, params: PageParams):
    total = query.count()
    items = query.offset(params.offset).limit(params.limit).all()
    return items, total
