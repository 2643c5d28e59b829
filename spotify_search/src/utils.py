from typing import Iterator, List, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Particiona `items` en bloques consecutivos de como mucho `size` elementos."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def parse_retry_after(headers: Mapping[str, str]) -> Optional[int]:
    raw = headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return max(0, int(str(raw).strip()))
    except ValueError:
        return None
