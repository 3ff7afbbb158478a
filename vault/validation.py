"""
PassVault Validation Module
Input validation and unlock attempt limiting
"""

import os
import json
import time
from typing import Dict, Tuple

import email_validator

from . import config

MAX_FIELD_LENGTH = 500
MAX_NOTES_LENGTH = 5000

def is_utf8_text(value: str) -> bool:
    """Check that a string can be stored (lone surrogates cannot)"""
    try:
        value.encode('utf-8')
    except UnicodeEncodeError:
        return False
    return True

def validate_master_password(password: str) -> Tuple[bool, str]:
    """
    Check a master passphrase before key derivation

    Returns:
        (is_valid, validation_message)
    """
    if not password:
        return False, "Master password required"

    if len(password) < config.MIN_MASTER_PASSWORD_LENGTH:
        return False, f"Minimum {config.MIN_MASTER_PASSWORD_LENGTH} characters required"

    if not is_utf8_text(password):
        return False, "Master password contains invalid characters"

    return True, "Master password accepted"

def validate_email(email: str) -> bool:
    """
    Validate email using python-email-validator

    Returns:
        True if email is valid
    """
    if not email:
        return True

    try:
        email_validator.validate_email(email, check_deliverability=False)
        return True
    except email_validator.EmailNotValidError:
        return False

def validate_entry_draft(draft: Dict) -> Tuple[bool, str]:
    """
    Validate entry data collected from the user

    Returns:
        (is_valid, validation_message)
    """
    for field in ('website', 'username', 'password'):
        if not draft.get(field, '').strip():
            return False, f"{field.capitalize()} required"

    for field in ('website', 'username', 'password', 'category'):
        if len(draft.get(field, '')) > MAX_FIELD_LENGTH:
            return False, f"{field.capitalize()} exceeds maximum length"

    if len(draft.get('notes', '')) > MAX_NOTES_LENGTH:
        return False, "Notes exceed maximum length"

    for field in ('website', 'username', 'password', 'category', 'notes'):
        if not is_utf8_text(draft.get(field, '')):
            return False, f"{field.capitalize()} contains invalid characters"

    # Usernames that look like email addresses must be well formed
    username = draft.get('username', '')
    if '@' in username and '.' in username:
        if not validate_email(username):
            return False, "Invalid email format"

    return True, "Entry validation passed"

def _attempt_file(vault_path: str) -> str:
    return f"{vault_path}{config.ATTEMPTS_SUFFIX}"

def _read_attempts(vault_path: str) -> list:
    attempt_file = _attempt_file(vault_path)
    if not os.path.exists(attempt_file):
        return []

    try:
        with open(attempt_file, 'r') as f:
            attempts = json.load(f)
    except (OSError, ValueError):
        # Unreadable tracking data is treated as no recorded attempts
        return []

    if not isinstance(attempts, list):
        return []
    return [a for a in attempts if isinstance(a, dict) and 'timestamp' in a]

def record_failed_attempt(vault_path: str) -> None:
    """Log failed unlock attempt"""
    now = time.time()
    window_start = now - config.ATTEMPT_WINDOW

    attempts = _read_attempts(vault_path)
    attempts.append({'timestamp': now})
    attempts = [a for a in attempts if a['timestamp'] > window_start]

    try:
        with open(_attempt_file(vault_path), 'w') as f:
            json.dump(attempts, f)
    except OSError as e:
        print(f"[-] Could not record failed attempt: {e}")

def check_rate_limit(vault_path: str) -> bool:
    """Verify unlock attempts are within limits"""
    now = time.time()
    window_start = now - config.ATTEMPT_WINDOW
    attempts = [a for a in _read_attempts(vault_path) if a['timestamp'] > window_start]

    if len(attempts) >= config.MAX_UNLOCK_ATTEMPTS:
        last_attempt = max(a['timestamp'] for a in attempts)
        if now - last_attempt < config.LOCKOUT_TIME:
            return False

    return True

def clear_failed_attempts(vault_path: str) -> None:
    """Reset unlock attempt tracking"""
    attempt_file = _attempt_file(vault_path)

    try:
        if os.path.exists(attempt_file):
            os.remove(attempt_file)
    except OSError as e:
        print(f"[-] Could not clear attempt tracking: {e}")
