from __future__ import annotations

from decimal import Decimal, InvalidOperation

import numpy as np


def nice_step(span: float, target: int) -> float:
    """Grid spacing of the form {1, 2, 5} x 10^k giving about ``target`` lines over ``span``."""
    if target <= 0:
        raise ValueError("target must be > 0")
    if not np.isfinite(span) or span <= 0:
        raise ValueError(f"span must be a positive number, got {span!r}")
    rounded = _nice_number(span, round_result=False)
    return _nice_number(rounded / max(target - 1, 1), round_result=True)


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    """Multiples of :func:`nice_step` lying inside ``[vmin, vmax]``."""
    if vmin > vmax:
        vmin, vmax = vmax, vmin
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    step = nice_step(vmax - vmin, target)
    first = int(np.ceil(vmin / step - 1e-9))
    last = int(np.floor(vmax / step + 1e-9))
    ticks = np.arange(first, last + 1, dtype=np.float64) * step
    # Snap drift so values like -4.44e-16 become 0.
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    decimals = _decimals_from_step(step) if step is not None else 6
    d = Decimal(str(value))
    try:
        q = d.quantize(Decimal("1").scaleb(-decimals))
    except InvalidOperation:
        q = d
    out = format(q, "f")
    # Trim only fractional zeros so 30 and 40 keep theirs.
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def format_volume(volume: float) -> str:
    """Compact volume label: 950, 12.5K, 3.2M, 1.1B."""
    v = float(volume)
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if abs(v) >= threshold:
            return f"{format_tick(round(v / threshold, 1), step=0.1)}{suffix}"
    return format_tick(round(v), step=1.0)


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(repr(float(step))).normalize()
    return min(12, max(0, -int(d.as_tuple().exponent)))
