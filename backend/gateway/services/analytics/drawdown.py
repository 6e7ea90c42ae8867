# backend/gateway/services/analytics/drawdown.py
"""
Peak/trough drawdown for an ordered balance series.

Formula:
    Drawdown = (Peak - Trough) / Peak

Algorithm:
    1. Find the global peak (first occurrence on ties).
    2. Walk forward from the element after the peak, tracking the lowest
       balance seen.
    3. The first time the balance rises above that low (while the low is
       strictly below the peak), the low is frozen as the trough.
    4. If the balance never rises again, the trough is the lowest balance
       after the peak.

Only the first drawdown cycle after the global peak is measured; an earlier
or later, deeper drawdown is not reported. The series is assumed to be in
chronological order.
"""

from typing import Sequence

from gateway.services.analytics.types import DrawdownResult


def calculate_peak_trough_drawdown(balances: Sequence[float]) -> DrawdownResult:
    """
    Calculate the drawdown following the global peak of ``balances``.

    Args:
        balances: Balance values in chronological order

    Returns:
        DrawdownResult; all-zero for an empty series

    Examples:
        >>> calculate_peak_trough_drawdown([100, 150, 90, 120]).drawdown
        0.4
        >>> calculate_peak_trough_drawdown([100, 110, 120]).drawdown
        0.0
    """
    if not balances:
        return DrawdownResult()

    peak = balances[0]
    peak_index = 0
    for index, balance in enumerate(balances):
        if balance > peak:
            peak = balance
            peak_index = index

    trough = peak
    trough_index = None
    recovered = False
    for index in range(peak_index + 1, len(balances)):
        balance = balances[index]
        if balance < trough:
            trough = balance
            trough_index = index
        elif trough < peak and balance > trough:
            recovered = True
            break

    if trough_index is None or peak <= 0:
        return DrawdownResult(peak=peak, peak_index=peak_index, trough=peak)

    return DrawdownResult(
        peak=peak,
        peak_index=peak_index,
        trough=trough,
        trough_index=trough_index,
        drawdown=(peak - trough) / peak,
        recovered=recovered,
    )
