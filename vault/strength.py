"""
Password Strength Analysis for PassVault

Scores a password on a 0-100 scale from its length and the character classes
it contains, buckets the score into a strength label, estimates entropy from
the observed classes, and lists concrete suggestions for improvement.

The analysis is deterministic and performs no I/O. The entropy figure is an
approximation: it assumes every character was drawn from the full pool of each
class that appears, not from the password's actual alphabet.
"""

import math
import string
from typing import Dict, Any

# ==============================================================================
# SCORING CONSTANTS
# ==============================================================================

# Length tiers stack: a 16+ character password earns all three
LENGTH_TIERS = (
    (8, 20),
    (12, 15),
    (16, 15),
)

UPPERCASE_POINTS = 15
LOWERCASE_POINTS = 15
DIGIT_POINTS = 10
SYMBOL_POINTS = 10

# Pool sizes used for the entropy estimate
UPPERCASE_POOL = 26
LOWERCASE_POOL = 26
DIGIT_POOL = 10
SYMBOL_POOL = 32

# Strength labels
WEAK = "Weak"
FAIR = "Fair"
GOOD = "Good"
STRONG = "Strong"
VERY_STRONG = "Very Strong"

# Upper score bounds (exclusive) for each label, checked in order
STRENGTH_BUCKETS = (
    (40, WEAK),
    (60, FAIR),
    (75, GOOD),
    (90, STRONG),
)

FEEDBACK_MIN_LENGTH = "Use at least 8 characters"
FEEDBACK_RECOMMENDED_LENGTH = "Consider using 12+ characters"
FEEDBACK_UPPERCASE = "Add uppercase letters"
FEEDBACK_LOWERCASE = "Add lowercase letters"
FEEDBACK_DIGIT = "Add numbers"
FEEDBACK_SYMBOL = "Add special characters (!@#$%)"
FEEDBACK_EXCELLENT = "Excellent password!"

# ==============================================================================
# ANALYSIS
# ==============================================================================

def character_classes(password: str) -> Dict[str, bool]:
    """
    Report which ASCII character classes appear in a password.

    Returns:
        dict: Flags 'upper', 'lower', 'digit' and 'symbol'. Symbols are ASCII
              punctuation; spaces and non-ASCII characters count toward length
              only.
    """
    return {
        'upper': any(c in string.ascii_uppercase for c in password),
        'lower': any(c in string.ascii_lowercase for c in password),
        'digit': any(c in string.digits for c in password),
        'symbol': any(c in string.punctuation for c in password),
    }


def strength_label(score: int) -> str:
    """Map a 0-100 score to its strength label."""
    for upper_bound, label in STRENGTH_BUCKETS:
        if score < upper_bound:
            return label
    return VERY_STRONG


def estimate_entropy(password: str) -> float:
    """
    Estimate entropy bits as length * log2(pool size of observed classes).

    Returns 0.0 when no class is observed (for example an empty password).
    """
    classes = character_classes(password)

    charset_size = 0
    if classes['upper']:
        charset_size += UPPERCASE_POOL
    if classes['lower']:
        charset_size += LOWERCASE_POOL
    if classes['digit']:
        charset_size += DIGIT_POOL
    if classes['symbol']:
        charset_size += SYMBOL_POOL

    if charset_size == 0:
        return 0.0

    return len(password) * math.log2(charset_size)


def analyze_password(password: str) -> Dict[str, Any]:
    """
    Analyze a password's strength.

    Args:
        password (str): Password to analyze

    Returns:
        dict: Analysis with keys:
            - 'score': 0-100, sum of length and character-class points
            - 'strength': Weak, Fair, Good, Strong or Very Strong
            - 'entropy': Estimated entropy in bits (float)
            - 'feedback': Ordered list of suggestions, or a single affirmative
              message when every criterion is met

    Examples:
        >>> analyze_password("aaaaaaaa")['score']
        35
        >>> analyze_password("aaaaaaaa")['strength']
        'Weak'
    """
    length = len(password)
    classes = character_classes(password)

    score = 0
    for min_length, points in LENGTH_TIERS:
        if length >= min_length:
            score += points

    if classes['upper']:
        score += UPPERCASE_POINTS
    if classes['lower']:
        score += LOWERCASE_POINTS
    if classes['digit']:
        score += DIGIT_POINTS
    if classes['symbol']:
        score += SYMBOL_POINTS

    feedback = []
    if length < 8:
        feedback.append(FEEDBACK_MIN_LENGTH)
    if length < 12:
        feedback.append(FEEDBACK_RECOMMENDED_LENGTH)
    if not classes['upper']:
        feedback.append(FEEDBACK_UPPERCASE)
    if not classes['lower']:
        feedback.append(FEEDBACK_LOWERCASE)
    if not classes['digit']:
        feedback.append(FEEDBACK_DIGIT)
    if not classes['symbol']:
        feedback.append(FEEDBACK_SYMBOL)

    if not feedback:
        feedback.append(FEEDBACK_EXCELLENT)

    return {
        'score': score,
        'strength': strength_label(score),
        'entropy': estimate_entropy(password),
        'feedback': feedback,
    }
