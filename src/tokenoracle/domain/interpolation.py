"""Linear price interpolation between two historical records."""


def interpolate(
    ts_query: int | float,
    ts_before: int | float,
    price_before: float,
    ts_after: int | float,
    price_after: float,
) -> float:
    """Price on the straight line through (ts_before, price_before) and (ts_after, price_after).

    Queries outside [ts_before, ts_after] are extrapolated along the same line, not clamped.
    Callers must not pass ts_before == ts_after.
    """
    if ts_query == ts_before:
        return price_before
    if ts_query == ts_after:
        return price_after
    ratio = (ts_query - ts_before) / (ts_after - ts_before)
    return price_before + (price_after - price_before) * ratio
