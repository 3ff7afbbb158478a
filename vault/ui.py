"""
PassVault User Interface Components

Display and clipboard helpers for the command-line front end. Nothing here holds
vault state: every function receives plain data returned by the store or the
analyzers and prints it.

Key Features:
- Tabular listing of entries with column truncation
- Detailed entry view with formatted timestamps
- Score bars for password strength and vault health
- Clipboard copy with timed auto-clear

Dependencies: pyperclip for cross-platform clipboard support
"""

import threading
import time
from typing import List, Dict, Optional, Any
from datetime import datetime

import pyperclip

from . import config
from .health import health_score, health_rating

BAR_WIDTH = 20

# ==============================================================================
# FORMATTING HELPERS
# ==============================================================================

def format_timestamp(timestamp: Optional[float]) -> str:
    """
    Format a Unix timestamp as YYYY/MM/DD.

    Returns an empty string for None or an unrepresentable value.
    """
    if timestamp is None:
        return ""

    try:
        return datetime.fromtimestamp(timestamp).strftime("%Y/%m/%d")
    except (ValueError, TypeError, OSError, OverflowError):
        return ""


def format_datetime(timestamp: Optional[float]) -> str:
    """Format a Unix timestamp as YYYY/MM/DD HH:MM:SS."""
    if timestamp is None:
        return ""

    try:
        return datetime.fromtimestamp(timestamp).strftime("%Y/%m/%d %H:%M:%S")
    except (ValueError, TypeError, OSError, OverflowError):
        return ""


def mask_password_partial(password: str) -> str:
    """
    Partially mask a password for display.

    Shows the first 2 and last 2 characters; passwords of 4 characters or
    fewer are fully masked.

    Examples:
        >>> mask_password_partial("password123")
        'pa*******23'
        >>> mask_password_partial("abc")
        '***'
    """
    if not password:
        return ""

    length = len(password)
    if length <= 4:
        return "*" * length

    return f"{password[:2]}{'*' * (length - 4)}{password[-2:]}"


def score_bar(percentage: int, width: int = BAR_WIDTH) -> str:
    """
    Render a 0-100 value as a fixed-width bar.

    Example:
        >>> score_bar(50, width=10)
        '█████░░░░░'
    """
    percentage = max(0, min(100, percentage))
    filled = percentage * width // 100
    return '█' * filled + '░' * (width - filled)

# ==============================================================================
# ENTRY DISPLAY FUNCTIONS
# ==============================================================================

def display_entries_table(entries: List[Dict], show_password: bool = False) -> None:
    """
    Display entries in a formatted ASCII table.

    Rows are numbered from 1 in the order given; the number is what the
    interactive menu asks for when selecting an entry.

    Example Output:
        #   | Website       | Username         | Category | Modified
        ---------------------------------------------------------------
        1   | github.com    | dev@example.com  | Work     | 2024/01/15
    """
    if not entries:
        print("[-] No entries found")
        return

    headers = ['#', 'Website', 'Username', 'Category', 'Modified']
    if show_password:
        headers.append('Password')

    table_data = []
    for index, entry in enumerate(entries, start=1):
        row = [
            str(index),
            entry.get('website', '')[:30],
            entry.get('username', '')[:25],
            entry.get('category', '')[:15],
            format_timestamp(entry.get('last_modified')),
        ]
        if show_password:
            row.append(entry.get('password', '')[:20])
        table_data.append(row)

    # Column widths from the widest cell, plus padding
    col_widths = []
    for i, header in enumerate(headers):
        max_width = max([len(header)] + [len(row[i]) for row in table_data])
        col_widths.append(max_width + 2)

    print(' | '.join(header.ljust(col_widths[i]) for i, header in enumerate(headers)))
    print('-' * (sum(col_widths) + len(headers) * 3 - 1))

    for row in table_data:
        print(' | '.join(cell.ljust(col_widths[i]) for i, cell in enumerate(row)))


def display_entry(entry: Dict, show_password: bool = True) -> None:
    """
    Display every field of a single entry.

    Example Output:
        ==================================================
        Entry 3f9a1c0b2d4e5f60
        ==================================================
        Website:     github.com
        Username:    dev@example.com
        Password:    pa*******23
        Category:    Work
        Notes:       2FA via phone
        Created:     2024/01/15 14:30:45
        Modified:    2024/06/20 09:15:30
        ==================================================
    """
    password = entry.get('password', '')

    print("=" * 50)
    print(f"Entry {entry.get('id', 'N/A')}")
    print("=" * 50)
    print(f"Website:     {entry.get('website', '')}")
    print(f"Username:    {entry.get('username', '')}")
    print(f"Password:    {password if show_password else mask_password_partial(password)}")
    print(f"Category:    {entry.get('category', '')}")
    if entry.get('notes'):
        print(f"Notes:       {entry['notes']}")
    print(f"Created:     {format_datetime(entry.get('created_at'))}")
    print(f"Modified:    {format_datetime(entry.get('last_modified'))}")
    print("=" * 50)

# ==============================================================================
# ANALYSIS DISPLAY
# ==============================================================================

def display_strength(analysis: Dict[str, Any]) -> None:
    """Display a strength analysis produced by strength.analyze_password()."""
    print(f"Strength: {score_bar(analysis['score'])} {analysis['score']}/100 ({analysis['strength']})")
    print(f"Entropy:  ~{analysis['entropy']:.1f} bits")
    for suggestion in analysis['feedback']:
        print(f"  - {suggestion}")


def health_summary(report: Dict[str, int]) -> str:
    """
    One-line vault summary for the menu header.

    Example:
        >>> health_summary({'total': 5, 'weak': 2, 'reused': 0, 'old': 1})
        'Entries: 5 | 2 weak | 1 old'
    """
    parts = [f"Entries: {report['total']}"]
    for key in ('weak', 'reused', 'old'):
        if report[key] > 0:
            parts.append(f"{report[key]} {key}")
    return ' | '.join(parts)


def display_health_report(report: Dict[str, int]) -> None:
    """Display the password health dashboard."""
    score = health_score(report)

    print("=" * 50)
    print("Password Health")
    print("=" * 50)
    print(f"Total entries:      {report['total']}")
    print(f"Weak passwords:     {report['weak']}")
    print(f"Reused passwords:   {report['reused']}")
    print(f"Old passwords:      {report['old']} (>{config.OLD_PASSWORD_DAYS} days)")
    print()
    print(f"Health score: {score_bar(score)} {score}/100 ({health_rating(score)})")

    if report['weak']:
        print("[i] Strengthen weak passwords with the 'generate' command")
    if report['reused']:
        print("[i] Give every account its own password")
    if report['old']:
        print("[i] Rotate passwords that have not changed in six months")
    print("=" * 50)

# ==============================================================================
# CLIPBOARD MANAGEMENT
# ==============================================================================

def copy_to_clipboard(text: str, timeout: int = config.CLIPBOARD_CLEAR_SECONDS) -> bool:
    """
    Copy text to the system clipboard, clearing it again after a timeout.

    The clipboard is only cleared if it still holds the copied text. The timer
    runs in a daemon thread so it never blocks exit.

    Args:
        text (str): Text to copy
        timeout (int): Seconds before auto-clear; 0 disables it

    Returns:
        bool: True if the text was copied
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        print(f"[-] Clipboard error: {e}")
        return False

    if timeout > 0:
        def clear_clipboard():
            time.sleep(timeout)
            try:
                if pyperclip.paste() == text:
                    pyperclip.copy("")
            except pyperclip.PyperclipException:
                # Clipboard became unavailable; nothing left to clear
                pass

        clear_thread = threading.Thread(target=clear_clipboard)
        clear_thread.daemon = True
        clear_thread.start()

    return True
