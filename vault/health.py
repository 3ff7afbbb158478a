"""
Vault health aggregation.

Counts weak, reused and stale passwords across a set of entries and condenses
the counts into a 0-100 health score.
"""

from collections import Counter
from typing import Dict, Iterable, Any

from . import config
from .strength import analyze_password

SECONDS_PER_DAY = 24 * 60 * 60

# Penalty weights applied per affected fraction of the vault
WEAK_PENALTY = 30
REUSED_PENALTY = 30
OLD_PENALTY = 20


def build_health_report(entries: Iterable[Dict[str, Any]], now: int) -> Dict[str, int]:
    """
    Aggregate health counts over entries.

    Args:
        entries: Entry dictionaries with 'password' and 'last_modified'
        now (int): Current Unix time in seconds

    Returns:
        dict:
            - 'total': number of entries
            - 'weak': entries scoring below WEAK_SCORE_THRESHOLD
            - 'reused': over every password value that occurs more than once,
              the sum of its occurrence counts (three copies count as 3)
            - 'old': entries last modified more than OLD_PASSWORD_DAYS ago
    """
    entries = list(entries)
    max_age = config.OLD_PASSWORD_DAYS * SECONDS_PER_DAY

    weak = 0
    old = 0
    password_counts = Counter()

    for entry in entries:
        if analyze_password(entry['password'])['score'] < config.WEAK_SCORE_THRESHOLD:
            weak += 1

        password_counts[entry['password']] += 1

        if now - entry['last_modified'] > max_age:
            old += 1

    reused = sum(count for count in password_counts.values() if count > 1)

    return {
        'total': len(entries),
        'weak': weak,
        'reused': reused,
        'old': old,
    }


def health_score(report: Dict[str, int]) -> int:
    """
    Condense a health report into a 0-100 score.

    Each category subtracts its weight scaled by the affected share of entries
    (integer division); an empty vault scores 100.
    """
    score = 100
    total = report['total']
    if total > 0:
        score -= report['weak'] * WEAK_PENALTY // total
        score -= report['reused'] * REUSED_PENALTY // total
        score -= report['old'] * OLD_PENALTY // total
    return max(0, score)


def health_rating(score: int) -> str:
    """Describe a health score."""
    if score < 70:
        return "Needs attention"
    if score < 90:
        return "Good"
    return "Excellent"
