from src.core.config import settings


def ceil_div(amount: int, parts: int) -> int:
    """
    Integer ceiling division without going through float.

    Examples:
        >>> ceil_div(20000, 3)
        6667
        >>> ceil_div(20000, 4)
        5000
        >>> ceil_div(0, 3)
        0
    """
    if parts <= 0:
        raise ValueError("parts must be positive")
    return -(-amount // parts)


def clamp_non_negative(value: int) -> int:
    """max(0, value) for money: balances and net fees never go below zero."""
    return value if value > 0 else 0


def format_inr(amount: int, symbol: str | None = None) -> str:
    """
    Format a whole-rupee amount with Indian digit grouping.

    Examples:
        >>> format_inr(15000)
        '₹15,000'
        >>> format_inr(1234567)
        '₹12,34,567'
        >>> format_inr(-2000)
        '-₹2,000'
    """
    symbol = settings.currency_symbol if symbol is None else symbol
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(amount)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}{symbol}{digits}"
