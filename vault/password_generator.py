"""
Secure Password Generation Module for PassVault

Builds a working alphabet from the selected character classes and draws every
character independently from it using the secrets module, which is backed by
the operating system's cryptographically secure random source.

SECURITY NOTES:
- Uses secrets.choice() rather than the random module; generated values are secrets
- Characters are sampled with replacement, so repeats are possible and a
  selected class is not guaranteed to appear in a short password
- Length bounds are a caller concern; see clamp_length()
"""

import secrets
import string
from typing import Iterable, Optional, Tuple

from . import config

# ==============================================================================
# CHARACTER POOLS
# ==============================================================================

UPPER = 'upper'
LOWER = 'lower'
DIGIT = 'digit'
SYMBOL = 'symbol'

SYMBOL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

# Pools are concatenated in this order when building the alphabet
CHARACTER_POOLS = (
    (UPPER, string.ascii_uppercase),
    (LOWER, string.ascii_lowercase),
    (DIGIT, string.digits),
    (SYMBOL, SYMBOL_CHARACTERS),
)

ALL_CLASSES = frozenset(name for name, _ in CHARACTER_POOLS)

# ==============================================================================
# CUSTOM EXCEPTION CLASSES
# ==============================================================================

class PasswordGenerationError(Exception):
    """
    Raised when password generation parameters are invalid.

    Attributes:
        message (str): Human-readable error description
    """
    pass

# ==============================================================================
# PASSWORD GENERATION FUNCTIONS
# ==============================================================================

def clamp_length(length: int) -> int:
    """
    Clamp a requested length to the supported generator range.

    Examples:
        >>> clamp_length(4)
        8
        >>> clamp_length(64)
        32
    """
    return max(config.GENERATOR_MIN_LENGTH, min(config.GENERATOR_MAX_LENGTH, length))


def build_alphabet(classes: Optional[Iterable[str]] = None) -> str:
    """
    Concatenate the pools of the selected classes into one alphabet.

    Args:
        classes (Iterable[str], optional): Any of 'upper', 'lower', 'digit',
            'symbol'. None selects every class. An empty selection falls back
            to the lowercase pool.

    Raises:
        PasswordGenerationError: If an unknown class name is given.
    """
    selected = ALL_CLASSES if classes is None else frozenset(classes)

    unknown = selected - ALL_CLASSES
    if unknown:
        raise PasswordGenerationError(
            f"Unknown character class: {', '.join(sorted(unknown))}"
        )

    alphabet = ''.join(pool for name, pool in CHARACTER_POOLS if name in selected)

    # Never produce an empty alphabet
    return alphabet or string.ascii_lowercase


def generate_password(length: int = config.GENERATOR_DEFAULT_LENGTH,
                      classes: Optional[Iterable[str]] = None) -> str:
    """
    Generate a random password.

    Args:
        length (int): Exact number of characters. Not clamped here.
        classes (Iterable[str], optional): Character classes to draw from.
            Defaults to all four.

    Returns:
        str: Generated password

    Raises:
        PasswordGenerationError: If length is not positive or a class name is
            unknown.

    Examples:
        >>> len(generate_password(20, {'upper', 'digit'}))
        20
    """
    if length < 1:
        raise PasswordGenerationError("Password length must be positive")

    alphabet = build_alphabet(classes)
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_password_safe(length: int = config.GENERATOR_DEFAULT_LENGTH,
                           classes: Optional[Iterable[str]] = None) -> Tuple[bool, str]:
    """
    Generation wrapper that never raises; the length is clamped first.

    Returns:
        Tuple[bool, str]:
            - True and the password on success
            - False and the error message on failure
    """
    try:
        return True, generate_password(clamp_length(length), classes)
    except PasswordGenerationError as e:
        return False, str(e)
