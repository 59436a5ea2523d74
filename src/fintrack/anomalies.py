"""Flag stored expenses that stand out from the user's own spending history.

Two checks run per transaction, spike first:

- Unusual Spike: z-score above 2.2 within the transaction's category, using
  the population mean/stddev of every expense in that category. The
  transaction under test is part of its own baseline.
- Frequency Cluster: at least two other expenses on the same day with the
  same description (ignoring case).

A transaction gets at most one flag. Dismissed transactions still count
toward the baseline but are never flagged again.
"""

import math
import sqlite3

from fintrack.models import AnomalyFlag, Transaction
from fintrack.store import list_transactions

MIN_HISTORY = 5
MIN_CATEGORY_SAMPLES = 3
SPIKE_Z = 2.2
HIGH_Z = 4.0
CLUSTER_SIBLINGS = 2


def mean_and_stddev(amounts: list[float]) -> tuple[float, float]:
    """Population mean and standard deviation."""
    mean = sum(amounts) / len(amounts)
    variance = sum((a - mean) ** 2 for a in amounts) / len(amounts)
    return mean, math.sqrt(variance)


def z_score(value: float, mean: float, stddev: float) -> float:
    return 0.0 if stddev == 0 else (value - mean) / stddev


def find_anomalies(transactions: list[Transaction]) -> list[AnomalyFlag]:
    """Compute flags for one user's expense history."""
    if len(transactions) < MIN_HISTORY:
        return []

    groups: dict[int | None, list[float]] = {}
    for t in transactions:
        groups.setdefault(t.category_id, []).append(float(t.amount))

    flags: list[AnomalyFlag] = []
    for t in transactions:
        if t.is_anomaly_dismissed:
            continue

        amounts = groups[t.category_id]
        if len(amounts) >= MIN_CATEGORY_SAMPLES:
            mean, stddev = mean_and_stddev(amounts)
            z = z_score(float(t.amount), mean, stddev)
            if z > SPIKE_Z:
                flags.append(AnomalyFlag(
                    transaction=t,
                    reason=(
                        f"Unusual Spike: This is significantly higher than your typical "
                        f"{t.category_name or 'uncategorized'} spending (Avg: ${mean:.2f})"
                    ),
                    severity="high" if z > HIGH_Z else "medium",
                ))
                continue

        desc = t.description.lower()
        siblings = [
            other for other in transactions
            if other.id != t.id and other.date == t.date and other.description.lower() == desc
        ]
        if len(siblings) >= CLUSTER_SIBLINGS:
            flags.append(AnomalyFlag(
                transaction=t,
                reason=f'Frequency Cluster: Multiple transactions at "{t.description}" on the same day.',
                severity="medium",
            ))

    # ISO dates sort lexically; sort is stable for same-day flags
    flags.sort(key=lambda f: f.transaction.date, reverse=True)
    return flags


def detect_anomalies(conn: sqlite3.Connection, user_id: int) -> list[AnomalyFlag]:
    return find_anomalies(list_transactions(conn, user_id, type="expense"))


def dismiss_anomaly(conn: sqlite3.Connection, user_id: int, transaction_id: int) -> bool:
    """Stop flagging a transaction. Returns False if it isn't one of the user's."""
    cursor = conn.execute(
        "UPDATE transactions SET is_anomaly_dismissed = 1 WHERE id = ? AND user_id = ?",
        (transaction_id, user_id),
    )
    conn.commit()
    return cursor.rowcount > 0
