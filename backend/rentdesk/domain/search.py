from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, TypeVar

from .values import field

T = TypeVar("T")


def _contains(haystack: Any, needle: str) -> bool:
    if haystack is None:
        return False
    return needle in str(haystack).lower()


def _nested(obj: Any, *path: str) -> Any:
    cur = obj
    for name in path:
        if cur is None:
            return None
        cur = field(cur, name)
    return cur


def property_matches(row: Any, needle: str) -> bool:
    return _contains(field(row, "address"), needle) or _contains(field(row, "city"), needle)


def tenant_matches(row: Any, needle: str) -> bool:
    full = f"{field(row, 'first_name') or ''} {field(row, 'last_name') or ''}"
    return _contains(full, needle) or _contains(field(row, "email"), needle)


def contract_matches(row: Any, needle: str) -> bool:
    return (
        _contains(_nested(row, "tenant", "first_name"), needle)
        or _contains(_nested(row, "tenant", "last_name"), needle)
        or _contains(_nested(row, "property", "address"), needle)
    )


def payment_matches(row: Any, needle: str) -> bool:
    contract = field(row, "contract")
    return contract is not None and contract_matches(contract, needle)


def service_request_matches(row: Any, needle: str) -> bool:
    return _contains(field(row, "title"), needle) or _contains(_nested(row, "property", "address"), needle)


def filter_rows(rows: Iterable[T], q: Optional[str], matcher: Callable[[Any, str], bool]) -> list[T]:
    """Case-insensitive substring filter; blank query keeps everything."""
    needle = (q or "").strip().lower()
    if not needle:
        return list(rows)
    return [r for r in rows if matcher(r, needle)]
