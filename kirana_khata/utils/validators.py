# utils/validators.py

def non_empty(text: str) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)

    ok == False means parsing failed and value is None.
    NaN is treated as a failed parse.
    """
    if isinstance(x, bool):
        return False, None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return False, None
    if v != v:
        return False, None
    return True, v


def to_number(x) -> float:
    """
    Lenient parse used by the ledger: quantities and prices typed into a bill
    may be numbers or numeric strings; anything else counts as 0.
    """
    ok, val = try_parse_float(x)
    return val if ok else 0.0  # type: ignore[return-value]


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)


def is_strictly_positive_number(x) -> bool:
    """
    True iff x parses to a float and value > 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val > 0)
