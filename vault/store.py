"""
PassVault Store - entries, session lock state and persistence

This module provides the VaultStore class, the single owner of a vault's
entries and of its Locked/Unlocked session. It handles:
- Vault creation and passphrase verification through the metadata sidecar
- The lock state machine with lazy idle auto-lock
- CRUD and search operations, persisting a full snapshot after every mutation
- Health aggregation over the stored entries

Entries are plain dictionaries. Callers only ever receive copies, so nothing
outside the store can alter stored state without going through an operation.
"""

import os
import time
import secrets
from enum import Enum
from typing import List, Dict, Optional, Any

from . import config
from .crypto import (
    derive_master_key, default_kdf_params, create_verification_token,
    verify_verification_token, secure_erase_bytes
)
from .health import build_health_report
from .record_format import (
    VaultFormatError, read_records, write_records, read_metadata,
    write_metadata, build_metadata, metadata_path, metadata_salt,
    metadata_kdf_params
)
from .validation import validate_master_password, is_utf8_text

# Fields a caller may set on an entry
DRAFT_FIELDS = ('website', 'username', 'password', 'category', 'notes')

# ==============================================================================
# RESULT AND EXCEPTION TYPES
# ==============================================================================

class VaultStatus(Enum):
    """
    Outcome of a lifecycle or mutating vault operation.

    Only OK is truthy, so callers that just need success/failure can test the
    result directly while tests and the CLI can still tell failures apart.
    """
    OK = "ok"
    LOCKED = "vault is locked"
    NOT_FOUND = "entry not found"
    PERSISTENCE_FAILURE = "vault file could not be read or written"
    AUTH_FAILURE = "authentication failed"
    INVALID_INPUT = "invalid input"
    ALREADY_INITIALIZED = "vault already initialized"

    def __bool__(self) -> bool:
        return self is VaultStatus.OK


class VaultLockedError(Exception):
    """Raised by read operations attempted while the vault is locked."""
    pass

# ==============================================================================
# VAULT STORE CLASS
# ==============================================================================

class VaultStore:
    """
    Encrypted credential store with a Locked/Unlocked session.

    The store starts Locked. initialize() derives the master key from the
    passphrase and unlocks it; lock() drops the key; unlock() re-derives the key
    and checks it against the vault's verification token.

    Every operation that needs the vault unlocked first runs the auto-lock
    check: if the vault has been idle for longer than auto_lock_seconds it is
    locked before the request is evaluated. There is no background timer.
    """

    def __init__(self,
                 vault_path: str = config.DEFAULT_VAULT_PATH,
                 auto_lock_minutes: float = config.AUTO_LOCK_MINUTES,
                 kdf_params: Optional[Dict[str, int]] = None,
                 clock=time.time):
        """
        Args:
            vault_path (str): Record file path; the sidecar lives next to it
            auto_lock_minutes (float): Idle minutes before auto-lock, 0 disables
            kdf_params (dict, optional): Argon2id costs for a newly created
                vault. Existing vaults always use the costs in their metadata.
            clock (callable): Returns the current Unix time; seconds resolution
                is applied by the store
        """
        self.vault_path = vault_path
        self.auto_lock_seconds = int(auto_lock_minutes * 60)
        self.kdf_params = kdf_params
        self._clock = clock

        self._entries: List[Dict[str, Any]] = []
        self._master_key: Optional[bytearray] = None
        self._metadata: Optional[Dict[str, Any]] = None
        self._initialized = False
        self.last_activity = self._now()

    # ==========================================================================
    # SESSION STATE
    # ==========================================================================

    @property
    def is_locked(self) -> bool:
        return self._master_key is None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def exists(self) -> bool:
        """Return True if a vault has been created at vault_path."""
        return os.path.exists(metadata_path(self.vault_path))

    def _now(self) -> int:
        return int(self._clock())

    def _touch(self) -> None:
        self.last_activity = self._now()

    def _check_auto_lock(self) -> None:
        if self.is_locked or self.auto_lock_seconds <= 0:
            return

        if self._now() - self.last_activity > self.auto_lock_seconds:
            self.lock()
            print("[i] Vault auto-locked after inactivity")

    def check_auto_lock(self) -> bool:
        """
        Apply the idle auto-lock now, without counting as activity.

        Returns:
            bool: True if the vault is still unlocked
        """
        self._check_auto_lock()
        return not self.is_locked

    def _check_session(self) -> bool:
        """Run the auto-lock check and report whether the vault is unlocked."""
        self._check_auto_lock()
        if self.is_locked:
            print("[-] Vault is locked")
            return False
        return True

    def _require_unlocked(self) -> None:
        if not self._check_session():
            raise VaultLockedError("Vault is locked")

    def _derive_for_vault(self, passphrase: str) -> bytes:
        """Derive a key with the salt and costs recorded for this vault."""
        key, _ = derive_master_key(
            passphrase,
            metadata_salt(self._metadata),
            metadata_kdf_params(self._metadata)
        )
        return key

    def _set_key(self, key: bytes) -> None:
        if self._master_key is not None:
            secure_erase_bytes(self._master_key)
        self._master_key = bytearray(key)

    # ==========================================================================
    # LIFECYCLE
    # ==========================================================================

    def initialize(self, passphrase: str) -> VaultStatus:
        """
        Open or create the vault with the master passphrase and unlock it.

        If the vault exists, the passphrase must match its verification token.
        Otherwise a new salt is generated and the metadata sidecar and an empty
        record file are written. Allowed once per store instance.

        Returns:
            VaultStatus: OK, ALREADY_INITIALIZED, INVALID_INPUT, AUTH_FAILURE or
            PERSISTENCE_FAILURE
        """
        if self._initialized:
            print("[-] Vault already initialized; use unlock instead")
            return VaultStatus.ALREADY_INITIALIZED

        is_valid, message = validate_master_password(passphrase)
        if not is_valid:
            print(f"[-] {message}")
            return VaultStatus.INVALID_INPUT

        try:
            metadata = read_metadata(self.vault_path)
        except (OSError, VaultFormatError) as e:
            print(f"[-] Cannot read vault metadata: {e}")
            return VaultStatus.PERSISTENCE_FAILURE

        if metadata is None:
            return self._create(passphrase)

        self._metadata = metadata
        try:
            key = self._derive_for_vault(passphrase)
        except VaultFormatError as e:
            print(f"[-] Cannot read vault metadata: {e}")
            self._metadata = None
            return VaultStatus.PERSISTENCE_FAILURE

        if not verify_verification_token(key, metadata['verifier']):
            print("[-] Authentication failed")
            self._metadata = None
            return VaultStatus.AUTH_FAILURE

        self._initialized = True
        self._set_key(key)
        self._touch()
        print(f"[+] Vault unlocked: {self.vault_path}")
        return VaultStatus.OK

    def _create(self, passphrase: str) -> VaultStatus:
        if os.path.exists(self.vault_path):
            print(f"[-] '{self.vault_path}' exists but has no metadata; refusing to overwrite it")
            return VaultStatus.PERSISTENCE_FAILURE

        params = self.kdf_params or default_kdf_params()
        key, salt = derive_master_key(passphrase, params=params)
        metadata = build_metadata(salt, params, create_verification_token(key))

        try:
            write_metadata(self.vault_path, metadata)
            write_records(self.vault_path, key, [])
        except OSError as e:
            print(f"[-] Failed to create vault: {e}")
            return VaultStatus.PERSISTENCE_FAILURE

        self._metadata = metadata
        self._initialized = True
        self._entries = []
        self._set_key(key)
        self._touch()
        print(f"[+] Vault created: {self.vault_path}")
        return VaultStatus.OK

    def lock(self) -> None:
        """Lock the vault unconditionally, zeroing and dropping the key."""
        if self._master_key is not None:
            secure_erase_bytes(self._master_key)
        self._master_key = None

    def unlock(self, passphrase: str) -> VaultStatus:
        """
        Unlock with the master passphrase.

        The passphrase is checked by deriving a key and opening the verification
        token; a failure leaves the session state unchanged.

        Returns:
            VaultStatus: OK or AUTH_FAILURE
        """
        if not self._initialized:
            print("[-] Vault has not been initialized")
            return VaultStatus.AUTH_FAILURE

        if not is_utf8_text(passphrase):
            print("[-] Authentication failed")
            return VaultStatus.AUTH_FAILURE

        key = self._derive_for_vault(passphrase)
        if not verify_verification_token(key, self._metadata['verifier']):
            print("[-] Authentication failed")
            return VaultStatus.AUTH_FAILURE

        self._set_key(key)
        self._touch()
        print("[+] Vault unlocked")
        return VaultStatus.OK

    def close(self) -> None:
        """Release key material at shutdown."""
        self.lock()
        self._entries = []

    # ==========================================================================
    # PERSISTENCE
    # ==========================================================================

    def _persist(self) -> VaultStatus:
        try:
            write_records(self.vault_path, bytes(self._master_key), self._entries)
        except OSError as e:
            print(f"[-] Failed to save vault: {e}")
            return VaultStatus.PERSISTENCE_FAILURE
        return VaultStatus.OK

    def save(self) -> VaultStatus:
        """Rewrite the record file with a full snapshot of every entry."""
        if not self._check_session():
            return VaultStatus.LOCKED
        self._touch()

        status = self._persist()
        if status:
            print(f"[+] Vault saved ({len(self._entries)} entries)")
        return status

    def load(self) -> VaultStatus:
        """
        Replace the in-memory entries with the contents of the record file.

        A malformed record fails the whole load and leaves the current entries
        untouched, so a later save cannot drop records that failed to parse.
        """
        if not self._check_session():
            return VaultStatus.LOCKED
        self._touch()

        try:
            entries = read_records(self.vault_path, bytes(self._master_key))
        except OSError as e:
            print(f"[-] Failed to read vault: {e}")
            return VaultStatus.PERSISTENCE_FAILURE
        except VaultFormatError as e:
            print(f"[-] Vault file is malformed ({e}); no entries loaded")
            return VaultStatus.PERSISTENCE_FAILURE

        seen = set()
        for entry in entries:
            if entry['id'] in seen:
                print("[-] Vault file is malformed (duplicate entry ID); no entries loaded")
                return VaultStatus.PERSISTENCE_FAILURE
            seen.add(entry['id'])

        self._entries = entries
        print(f"[+] Loaded {len(entries)} entries")
        return VaultStatus.OK

    # ==========================================================================
    # ENTRY MANAGEMENT - CRUD OPERATIONS
    # ==========================================================================

    @staticmethod
    def _normalize_draft(draft: Any) -> Optional[Dict[str, str]]:
        if not isinstance(draft, dict):
            return None

        normalized = {}
        for field in DRAFT_FIELDS:
            value = draft.get(field, '')
            if not isinstance(value, str) or not is_utf8_text(value):
                return None
            normalized[field] = value
        return normalized

    def _generate_id(self) -> str:
        existing = {entry['id'] for entry in self._entries}
        while True:
            entry_id = secrets.token_hex(8)
            if entry_id not in existing:
                return entry_id

    def _find(self, entry_id: str) -> Optional[Dict[str, Any]]:
        for entry in self._entries:
            if entry['id'] == entry_id:
                return entry
        return None

    def add_entry(self, draft: Dict[str, str]) -> VaultStatus:
        """
        Store a new entry built from a draft and persist the vault.

        The entry gets a fresh unique ID and both timestamps set to now.

        Returns:
            VaultStatus: OK, LOCKED, INVALID_INPUT or PERSISTENCE_FAILURE
        """
        if not self._check_session():
            return VaultStatus.LOCKED
        self._touch()

        fields = self._normalize_draft(draft)
        if fields is None:
            print("[-] Entry fields must be UTF-8 text")
            return VaultStatus.INVALID_INPUT

        now = self._now()
        entry = {'id': self._generate_id()}
        entry.update(fields)
        entry['created_at'] = now
        entry['last_modified'] = now

        self._entries.append(entry)
        try:
            status = self._persist()
        except Exception:
            # Only I/O failures keep the change in memory
            self._entries.remove(entry)
            raise
        if status:
            print(f"[+] Entry added (ID: {entry['id']})")
        return status

    def update_entry(self, entry_id: str, draft: Dict[str, str]) -> VaultStatus:
        """
        Overwrite an entry's editable fields and persist the vault.

        Returns:
            VaultStatus: OK, LOCKED, NOT_FOUND, INVALID_INPUT or PERSISTENCE_FAILURE
        """
        if not self._check_session():
            return VaultStatus.LOCKED
        self._touch()

        entry = self._find(entry_id)
        if entry is None:
            print(f"[-] Entry not found: {entry_id}")
            return VaultStatus.NOT_FOUND

        fields = self._normalize_draft(draft)
        if fields is None:
            print("[-] Entry fields must be UTF-8 text")
            return VaultStatus.INVALID_INPUT

        previous = dict(entry)
        entry.update(fields)
        entry['last_modified'] = max(self._now(), entry['created_at'])

        try:
            status = self._persist()
        except Exception:
            # Only I/O failures keep the change in memory
            entry.clear()
            entry.update(previous)
            raise
        if status:
            print(f"[+] Entry updated (ID: {entry_id})")
        return status

    def delete_entry(self, entry_id: str) -> VaultStatus:
        """
        Remove an entry and persist the vault.

        An unknown ID is a no-op failure: nothing is removed or written.

        Returns:
            VaultStatus: OK, LOCKED, NOT_FOUND or PERSISTENCE_FAILURE
        """
        if not self._check_session():
            return VaultStatus.LOCKED
        self._touch()

        entry = self._find(entry_id)
        if entry is None:
            print(f"[-] Entry not found: {entry_id}")
            return VaultStatus.NOT_FOUND

        self._entries.remove(entry)
        status = self._persist()
        if status:
            print(f"[+] Entry deleted (ID: {entry_id})")
        return status

    # ==========================================================================
    # READ OPERATIONS
    # ==========================================================================

    def search_entries(self, query: str) -> List[Dict[str, Any]]:
        """
        Find entries whose website, username or category contains the query.

        Matching is case-insensitive and results keep storage order; an empty
        query matches every entry.

        Raises:
            VaultLockedError: If the vault is (or just became) locked.
        """
        self._require_unlocked()
        self._touch()

        needle = query.lower()
        return [
            dict(entry) for entry in self._entries
            if needle in entry['website'].lower()
            or needle in entry['username'].lower()
            or needle in entry['category'].lower()
        ]

    def get_all_entries(self) -> List[Dict[str, Any]]:
        """
        Return copies of every entry in storage order.

        Raises:
            VaultLockedError: If the vault is (or just became) locked.
        """
        self._require_unlocked()
        self._touch()
        return [dict(entry) for entry in self._entries]

    def get_entry(self, entry_id: str) -> Optional[Dict[str, Any]]:
        """
        Return a copy of one entry, or None if the ID is unknown.

        Raises:
            VaultLockedError: If the vault is (or just became) locked.
        """
        self._require_unlocked()
        self._touch()

        entry = self._find(entry_id)
        return dict(entry) if entry is not None else None

    def get_health_report(self) -> Dict[str, int]:
        """
        Aggregate weak, reused and old password counts over all entries.

        Raises:
            VaultLockedError: If the vault is (or just became) locked.
        """
        self._require_unlocked()
        self._touch()
        return build_health_report(self._entries, self._now())
