#!/usr/bin/env python3
"""
PassVault Password Manager
A terminal password vault with encrypted storage, idle auto-lock, password
generation, strength analysis and a password health dashboard.
"""

# ==============================================================================
# STANDARD LIBRARY IMPORTS
# ==============================================================================
import sys
import argparse

# ==============================================================================
# THIRD-PARTY LIBRARY IMPORTS
# ==============================================================================
from prompt_toolkit import prompt
from prompt_toolkit.shortcuts import clear
from prompt_toolkit.validation import Validator, ValidationError
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory

# ==============================================================================
# CUSTOM MODULE IMPORTS
# ==============================================================================
from vault import config, password_generator, strength, ui, validation
from vault.store import VaultStore, VaultStatus, VaultLockedError

# ==============================================================================
# CONSTANTS AND GLOBAL CONFIGURATION
# ==============================================================================

BANNER = r"""
  ___               __   __         _ _
 | _ \__ _ ______ __\ \ / /_ _ _  _| | |_
 |  _/ _` (_-<_-<___\ V / _` | || | |  _|
 |_| \__,_/__/__/    \_/\__,_|\_,_|_|\__|
"""

MAIN_MENU_INTERACTIVE = f"""
{BANNER}
Available commands:

'add' (a)       - Store a new credential (website, username, password, category, notes)
'list' (l)      - List all stored credentials
'get' (g)       - Show one credential and copy its password to the clipboard
'search' (s)    - Find credentials by website, username or category
'update' (u)    - Change a stored credential (blank input keeps the current value)
'delete' (d)    - Remove a credential (requires confirmation)
'generate' (gp) - Generate a random password
'analyze' (an)  - Analyze the strength of a password
'health' (hr)   - Show the password health dashboard
'save' (sv)     - Write the vault to disk
'lock' (lk)     - Lock the vault now
'help' (h)      - Show this help message
'exit' (q)      - Exit the program
"""

COMMAND_ALIASES = {
    'add': 'add',
    'list': 'list',
    'get': 'get',
    'search': 'search',
    'update': 'update',
    'delete': 'delete',
    'generate': 'generate',
    'analyze': 'analyze',
    'health': 'health',
    'save': 'save',
    'lock': 'lock',
    'help': 'help',
    'exit': 'exit',
    'quit': 'exit',

    # Abbreviations
    'a': 'add',
    'l': 'list',
    'g': 'get',
    's': 'search',
    'u': 'update',
    'd': 'delete',
    'gp': 'generate',
    'an': 'analyze',
    'hr': 'health',
    'sv': 'save',
    'lk': 'lock',
    'h': 'help',
    'q': 'exit',
}

# Commands that do not touch vault contents
UNGATED_COMMANDS = {'generate', 'analyze', 'help', 'exit'}

# ==============================================================================
# VALIDATORS
# ==============================================================================

class NumberValidator(Validator):
    """Validator for numeric input fields."""

    def validate(self, document):
        """Ensure input contains only digits."""
        text = document.text
        if text and not text.isdigit():
            raise ValidationError(message='Please enter a valid number')

# ==============================================================================
# MAIN APPLICATION CLASS
# ==============================================================================

class PassVault:
    """
    Interactive front end over a VaultStore.

    Holds no vault state of its own: every command calls a store operation and
    displays the result. When the store reports that it is locked (explicitly
    or through auto-lock) the user is asked for the master password again.
    """

    def __init__(self, vault_path=config.DEFAULT_VAULT_PATH,
                 auto_lock_minutes=config.AUTO_LOCK_MINUTES):
        self.store = VaultStore(vault_path, auto_lock_minutes=auto_lock_minutes)
        self.history = InMemoryHistory()
        self.auto_suggest = AutoSuggestFromHistory()
        self.completer = WordCompleter(sorted(COMMAND_ALIASES), ignore_case=True)

    # ==========================================================================
    # COMMAND RESOLUTION AND PROMPT FORMATTING
    # ==========================================================================

    def _resolve_command(self, command_input):
        """
        Resolve user input to a command using aliases and prefix matching.

        Returns:
            str or None: Command name, or None if unknown or ambiguous
        """
        if not command_input:
            return None

        command_input = command_input.strip().lower()

        if command_input in COMMAND_ALIASES:
            return COMMAND_ALIASES[command_input]

        matches = sorted({COMMAND_ALIASES[cmd] for cmd in COMMAND_ALIASES
                          if cmd.startswith(command_input)})

        if len(matches) == 1:
            return matches[0]
        elif len(matches) > 1:
            print(f"[-] Ambiguous command '{command_input}'. Could be: {', '.join(matches)}")
            return None

        print(f"[-] Unknown command: '{command_input}'")
        print("[i] Type 'help' or 'h' for available commands")
        return None

    def _format_prompt(self):
        if self.store.is_locked:
            return "passvault@locked/> "
        return "passvault/> "

    def _report(self, status, success_message=None):
        """Print the outcome of a store operation."""
        if status:
            if success_message:
                print(f"[+] {success_message}")
            return True

        if status is VaultStatus.LOCKED:
            print("[-] Operation refused: vault is locked")
        else:
            print(f"[-] Operation failed: {status.value}")
        return False

    # ==========================================================================
    # VAULT MANAGEMENT
    # ==========================================================================

    def initialize_vault(self):
        """
        Create a new vault protected by a master password.

        Returns:
            bool: True if the vault was created
        """
        if self.store.exists():
            print(f"[-] Vault '{self.store.vault_path}' already exists!")
            print("[i] Use 'unlock' to open it, or choose a different --vault path.")
            return False

        while True:
            master_pwd = prompt(
                f"Create master password (minimum {config.MIN_MASTER_PASSWORD_LENGTH} characters): ",
                is_password=True
            )
            confirm_pwd = prompt("Confirm master password: ", is_password=True)

            if master_pwd != confirm_pwd:
                print("[-] Passwords do not match")
                continue

            is_valid, message = validation.validate_master_password(master_pwd)
            if not is_valid:
                print(f"[-] Password validation failed: {message}")
                continue
            break

        print("[+] Deriving encryption key...")
        return bool(self.store.initialize(master_pwd))

    def unlock_vault(self):
        """
        Ask for the master password until the vault unlocks or attempts run out.

        The first successful unlock of the session also loads the entries; a
        vault whose records cannot be loaded is locked again.

        Returns:
            bool: True if the vault is unlocked
        """
        vault_path = self.store.vault_path

        if not self.store.is_initialized and not self.store.exists():
            print(f"[-] PassVault vault not found: {vault_path}")
            print("[i] Create one with 'init'")
            return False

        if not validation.check_rate_limit(vault_path):
            print("[-] Rate limit exceeded. Please wait before retrying.")
            return False

        attempts = 0
        while attempts < config.MAX_UNLOCK_ATTEMPTS:
            master_pwd = prompt("Master password: ", is_password=True)

            if self.store.is_initialized:
                status = self.store.unlock(master_pwd)
            else:
                status = self.store.initialize(master_pwd)
                if status:
                    loaded = self.store.load()
                    if not loaded:
                        # Never run a session that could overwrite unreadable records
                        self.store.lock()
                        return self._report(loaded)

            if status:
                validation.clear_failed_attempts(vault_path)
                return True

            if status is not VaultStatus.AUTH_FAILURE:
                return self._report(status)

            attempts += 1
            validation.record_failed_attempt(vault_path)
            print(f"[-] Attempts remaining: {config.MAX_UNLOCK_ATTEMPTS - attempts}")

        print("[-] Maximum authentication attempts reached")
        return False

    # ==========================================================================
    # ENTRY COMMANDS
    # ==========================================================================

    def _choose_password(self, allow_keep=False):
        """
        Ask for a password: typed, generated, or (on update) kept.

        Returns:
            str or None: The new password, or None to keep the current one
        """
        print("Password options:")
        if allow_keep:
            print("  0. Keep current password")
        print("  1. Enter password manually")
        print("  2. Generate secure password")
        choice = prompt("Selection [1/2]: ").strip()

        if allow_keep and choice in ('', '0'):
            return None

        if choice == '2':
            password = password_generator.generate_password(config.GENERATOR_DEFAULT_LENGTH)
            print(f"[+] Generated password: {ui.mask_password_partial(password)}")
        else:
            while True:
                password = prompt("Password: ", is_password=True)
                if password:
                    break
                print("[-] Password cannot be empty")

        ui.display_strength(strength.analyze_password(password))
        return password

    def _select_entry(self, action):
        """
        List entries and ask for one by its row number.

        Returns:
            dict or None: A copy of the selected entry
        """
        entries = self.store.get_all_entries()
        if not entries:
            print("[-] No entries found")
            return None

        ui.display_entries_table(entries)
        selection = prompt(f"Entry # to {action}: ", validator=NumberValidator()).strip()
        if not selection.isdigit() or not 1 <= int(selection) <= len(entries):
            print("[-] Invalid entry number")
            return None

        return entries[int(selection) - 1]

    def add_entry(self):
        """Collect a new credential and store it."""
        draft = {
            'website': prompt("Website: ").strip(),
            'username': prompt("Username/Email: ").strip(),
        }
        draft['password'] = self._choose_password()
        draft['category'] = prompt("Category [General]: ").strip() or "General"
        draft['notes'] = prompt("Notes (optional): ").strip()

        is_valid, message = validation.validate_entry_draft(draft)
        if not is_valid:
            print(f"[-] {message}")
            return False

        return self._report(self.store.add_entry(draft))

    def list_entries(self):
        entries = self.store.get_all_entries()
        ui.display_entries_table(entries)
        if entries:
            print(f"\n[+] Total entries: {len(entries)}")

    def get_entry(self):
        """Show one entry with a masked password and offer to copy it."""
        entry = self._select_entry("show")
        if entry is None:
            return

        ui.display_entry(entry, show_password=False)
        if prompt("Copy password to clipboard? [Y/n]: ").strip().lower() != 'n':
            if ui.copy_to_clipboard(entry['password']):
                print(f"[+] Password copied to clipboard ({config.CLIPBOARD_CLEAR_SECONDS} second retention)")

    def search_entries(self):
        query = prompt("Search: ").strip()
        results = self.store.search_entries(query)
        if results:
            print(f"[+] {len(results)} match(es) for '{query}'")
        ui.display_entries_table(results)

    def update_entry(self):
        """Edit an entry; blank input keeps each current value."""
        entry = self._select_entry("update")
        if entry is None:
            return False

        print("[i] Leave field blank to preserve current value")
        draft = {
            'website': prompt(f"Website [{entry['website']}]: ").strip() or entry['website'],
            'username': prompt(f"Username [{entry['username']}]: ").strip() or entry['username'],
        }
        draft['password'] = self._choose_password(allow_keep=True) or entry['password']
        draft['category'] = prompt(f"Category [{entry['category']}]: ").strip() or entry['category']
        draft['notes'] = prompt("Notes [unchanged]: ").strip() or entry['notes']

        is_valid, message = validation.validate_entry_draft(draft)
        if not is_valid:
            print(f"[-] {message}")
            return False

        return self._report(self.store.update_entry(entry['id'], draft))

    def delete_entry(self):
        """Delete an entry after confirmation."""
        entry = self._select_entry("delete")
        if entry is None:
            return False

        confirm = prompt(f"Delete '{entry['website']}' ({entry['username']})? [y/N]: ").strip().lower()
        if confirm != 'y':
            print("[i] Deletion cancelled")
            return False

        return self._report(self.store.delete_entry(entry['id']))

    def show_health(self):
        ui.display_health_report(self.store.get_health_report())

    # ==========================================================================
    # PASSWORD TOOLS
    # ==========================================================================

    def generate_password(self):
        """Generate a password with interactively chosen length and classes."""
        length_input = prompt(f"Password length [{config.GENERATOR_DEFAULT_LENGTH}]: ",
                              validator=NumberValidator()).strip()
        length = int(length_input) if length_input else config.GENERATOR_DEFAULT_LENGTH
        length = password_generator.clamp_length(length)

        classes = set()
        for name, label in ((password_generator.UPPER, "uppercase letters"),
                            (password_generator.LOWER, "lowercase letters"),
                            (password_generator.DIGIT, "numbers"),
                            (password_generator.SYMBOL, "special characters")):
            if prompt(f"Include {label}? [Y/n]: ").strip().lower() != 'n':
                classes.add(name)

        password = password_generator.generate_password(length, classes)
        print(f"Generated password: {ui.mask_password_partial(password)}")
        ui.display_strength(strength.analyze_password(password))

        if ui.copy_to_clipboard(password):
            print(f"[+] Password copied to clipboard ({config.CLIPBOARD_CLEAR_SECONDS} second retention)")

        if prompt("Reveal full password? [y/N]: ").strip().lower() == 'y':
            print(f"Full password: {password}")

    def analyze_password(self):
        password = prompt("Password to analyze: ", is_password=True)
        ui.display_strength(strength.analyze_password(password))

    # ==========================================================================
    # INTERACTIVE LOOP
    # ==========================================================================

    def dispatch(self, command):
        """
        Run one resolved command.

        Returns:
            bool: False when the session should end
        """
        handlers = {
            'add': self.add_entry,
            'list': self.list_entries,
            'get': self.get_entry,
            'search': self.search_entries,
            'update': self.update_entry,
            'delete': self.delete_entry,
            'generate': self.generate_password,
            'analyze': self.analyze_password,
            'health': self.show_health,
            'save': lambda: self._report(self.store.save()),
            'lock': self.store.lock,
        }

        if command == 'exit':
            return False
        if command == 'help':
            print(MAIN_MENU_INTERACTIVE)
            return True

        handlers[command]()
        return True

    def run(self):
        """Interactive command loop for an unlocked vault."""
        print(BANNER)
        print(f"[i] {ui.health_summary(self.store.get_health_report())}")
        print("[i] Type 'help' or 'h' for available commands")

        while True:
            try:
                selection = prompt(
                    self._format_prompt(),
                    history=self.history,
                    auto_suggest=self.auto_suggest,
                    completer=self.completer
                ).strip()

                command = self._resolve_command(selection)
                if not command:
                    continue

                if command not in UNGATED_COMMANDS and not self.store.check_auto_lock():
                    if not self.unlock_vault():
                        break
                    if command == 'lock':
                        continue

                try:
                    if not self.dispatch(command):
                        print("[+] PassVault secured")
                        break
                except VaultLockedError:
                    print("[-] Operation refused: vault is locked")

                if command == 'lock':
                    clear()
                    print("[+] Vault locked")

            except KeyboardInterrupt:
                print("\n[i] Press Ctrl+D to exit or type 'exit'")
            except EOFError:
                print("[+] PassVault secured")
                break

    def cleanup(self):
        """Drop key material and entries."""
        self.store.close()

# ==============================================================================
# MAIN ENTRY POINT
# ==============================================================================

def build_parser():
    parser = argparse.ArgumentParser(
        description="PassVault keeps website and account credentials in an encrypted local vault, "
                    "with idle auto-lock, password generation, strength analysis and a health dashboard.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='command', help='Available operations')

    init_parser = subparsers.add_parser('init', help='Create a new encrypted vault')
    init_parser.add_argument(
        '--vault',
        default=config.DEFAULT_VAULT_PATH,
        help=f'Vault file path (default: {config.DEFAULT_VAULT_PATH})'
    )

    unlock_parser = subparsers.add_parser('unlock', help='Unlock a vault for interactive management')
    unlock_parser.add_argument(
        '--vault',
        default=config.DEFAULT_VAULT_PATH,
        help=f'Vault file path (default: {config.DEFAULT_VAULT_PATH})'
    )
    unlock_parser.add_argument(
        '--auto-lock',
        type=float,
        default=config.AUTO_LOCK_MINUTES,
        help=f'Idle minutes before the vault locks, 0 disables (default: {config.AUTO_LOCK_MINUTES})'
    )

    gen_parser = subparsers.add_parser('generate', help='Generate a secure password')
    gen_parser.add_argument(
        '--length',
        type=int,
        default=config.GENERATOR_DEFAULT_LENGTH,
        help=f'Password length, clamped to {config.GENERATOR_MIN_LENGTH}-{config.GENERATOR_MAX_LENGTH} '
             f'(default: {config.GENERATOR_DEFAULT_LENGTH})'
    )
    gen_parser.add_argument('--no-upper', action='store_true', help='Exclude uppercase letters')
    gen_parser.add_argument('--no-lower', action='store_true', help='Exclude lowercase letters')
    gen_parser.add_argument('--no-digits', action='store_true', help='Exclude digits')
    gen_parser.add_argument('--no-symbols', action='store_true', help='Exclude symbols')
    gen_parser.add_argument(
        '--reveal',
        action='store_true',
        help='Show the full generated password (default: partially masked)'
    )

    subparsers.add_parser('analyze', help='Analyze the strength of a password')

    return parser


def classes_from_args(args):
    """Translate the --no-* generator flags into a set of character classes."""
    classes = set()
    if not args.no_upper:
        classes.add(password_generator.UPPER)
    if not args.no_lower:
        classes.add(password_generator.LOWER)
    if not args.no_digits:
        classes.add(password_generator.DIGIT)
    if not args.no_symbols:
        classes.add(password_generator.SYMBOL)
    return classes


def main(argv=None):
    """Main entry point for PassVault."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == 'generate':
        success, result = password_generator.generate_password_safe(args.length, classes_from_args(args))
        if not success:
            print(f"[-] {result}")
            return 1

        shown = result if args.reveal else ui.mask_password_partial(result)
        print(f"Generated password: {shown}")
        print(f"Security rating: {strength.analyze_password(result)['strength']}")

        if ui.copy_to_clipboard(result):
            print(f"[+] Password copied to clipboard ({config.CLIPBOARD_CLEAR_SECONDS} second retention)")
        return 0

    if args.command == 'analyze':
        password = prompt("Password to analyze: ", is_password=True)
        ui.display_strength(strength.analyze_password(password))
        return 0

    app = PassVault(args.vault, getattr(args, 'auto_lock', config.AUTO_LOCK_MINUTES))

    try:
        if args.command == 'init':
            return 0 if app.initialize_vault() else 1

        if args.command == 'unlock':
            if not app.unlock_vault():
                return 1
            app.run()
            return 0

    except KeyboardInterrupt:
        print("\n[-] Operation terminated and vault locked.")
        return 1
    finally:
        app.cleanup()

    parser.print_help()
    return 0

if __name__ == "__main__":
    sys.exit(main())
