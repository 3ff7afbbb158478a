"""
PassVault Record File Format

The vault is stored as two files:

1. The record file: plain text, one entry per line, no header:

       hex(id)|hex(website)|hex(username)|hex(password)|hex(category)|hex(notes)|created_at|last_modified

   Each hex(...) value is an independently encrypted field produced by
   crypto.encrypt_field(); the two timestamps are plaintext integer Unix
   seconds. Hex digits never include '|' or a newline, so the delimiters are
   unambiguous.

2. The metadata sidecar (<record file>.meta): JSON with the format version,
   creation time, Argon2id salt and parameters, and the sealed verification
   token used to check a passphrase.

Both files are rewritten atomically: data goes to a temporary file in the same
directory which then replaces the target, so an interrupted save never leaves
a half-written vault behind.
"""

import os
import re
import json
import base64
import tempfile
import time
from typing import Dict, List, Optional, Any

from . import config
from .crypto import encrypt_field, decrypt_field, CipherError

# ==============================================================================
# FORMAT CONSTANTS
# ==============================================================================

FIELD_DELIMITER = '|'

# Encrypted fields, in on-disk order
ENCRYPTED_FIELDS = ('id', 'website', 'username', 'password', 'category', 'notes')

# Plaintext integer fields following the encrypted ones
TIMESTAMP_FIELDS = ('created_at', 'last_modified')

RECORD_FIELD_COUNT = len(ENCRYPTED_FIELDS) + len(TIMESTAMP_FIELDS)

REQUIRED_METADATA_FIELDS = ('version', 'created_at', 'salt', 'kdf', 'verifier')

_TIMESTAMP_PATTERN = re.compile(r'[0-9]+')

# ==============================================================================
# CUSTOM EXCEPTION CLASSES
# ==============================================================================

class VaultFormatError(Exception):
    """
    Raised when a record line or the metadata sidecar cannot be parsed.

    Attributes:
        line_number (int or None): 1-based line of the offending record, if any
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number

# ==============================================================================
# RECORD ENCODING
# ==============================================================================

def encode_record(master_key: bytes, entry: Dict[str, Any]) -> str:
    """
    Serialize one entry to a newline-terminated record line.

    Args:
        master_key (bytes): Master key from crypto.derive_master_key()
        entry (dict): Entry with every key of ENCRYPTED_FIELDS and TIMESTAMP_FIELDS

    Returns:
        str: Record line ending in '\\n'
    """
    parts = [encrypt_field(master_key, entry[field]) for field in ENCRYPTED_FIELDS]
    parts.extend(str(int(entry[field])) for field in TIMESTAMP_FIELDS)
    return FIELD_DELIMITER.join(parts) + '\n'


def decode_record(master_key: bytes, line: str, line_number: Optional[int] = None) -> Dict[str, Any]:
    """
    Parse and decrypt one record line.

    Raises:
        VaultFormatError: On a wrong field count, a non-numeric timestamp, or a
            field that fails to decrypt.
    """
    parts = line.rstrip('\r\n').split(FIELD_DELIMITER)
    if len(parts) != RECORD_FIELD_COUNT:
        raise VaultFormatError(
            f"expected {RECORD_FIELD_COUNT} fields, found {len(parts)}",
            line_number
        )

    entry = {}
    for field, value in zip(ENCRYPTED_FIELDS, parts):
        try:
            entry[field] = decrypt_field(master_key, value)
        except CipherError as e:
            raise VaultFormatError(f"field '{field}': {e}", line_number) from e

    for field, value in zip(TIMESTAMP_FIELDS, parts[len(ENCRYPTED_FIELDS):]):
        if not _TIMESTAMP_PATTERN.fullmatch(value):
            raise VaultFormatError(f"field '{field}' is not an integer timestamp", line_number)
        entry[field] = int(value)

    return entry

# ==============================================================================
# FILE OPERATIONS
# ==============================================================================

def _atomic_write(path: str, content: str) -> None:
    """
    Replace a file's content atomically.

    Raises:
        OSError: If the directory is not writable or the replace fails.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=directory, prefix='.passvault-', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


def write_records(path: str, master_key: bytes, entries: List[Dict[str, Any]]) -> None:
    """
    Write a full snapshot of every entry, replacing the record file.

    Raises:
        OSError: If the file cannot be written.
    """
    content = ''.join(encode_record(master_key, entry) for entry in entries)
    _atomic_write(path, content)


def read_records(path: str, master_key: bytes) -> List[Dict[str, Any]]:
    """
    Read and decrypt every record in the file, in file order.

    Blank lines are skipped. Any malformed line aborts the whole read.

    Raises:
        OSError: If the file cannot be opened or read.
        VaultFormatError: On the first malformed record.
    """
    entries = []
    with open(path, 'r', encoding='utf-8', newline='') as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            entries.append(decode_record(master_key, line, line_number))
    return entries

# ==============================================================================
# METADATA SIDECAR
# ==============================================================================

def metadata_path(vault_path: str) -> str:
    """Return the sidecar path for a record file."""
    return f"{vault_path}{config.METADATA_SUFFIX}"


def build_metadata(salt: bytes, kdf_params: Dict[str, int], verifier: Dict[str, str]) -> Dict[str, Any]:
    """
    Assemble the sidecar dictionary for a new vault.

    Args:
        salt (bytes): Argon2id salt
        kdf_params (dict): Argon2id cost parameters used for this vault
        verifier (dict): Output of crypto.create_verification_token()
    """
    return {
        'version': config.VAULT_FORMAT_VERSION,
        'created_at': int(time.time()),
        'salt': base64.b64encode(salt).decode('ascii'),
        'kdf': dict(kdf_params, algorithm='argon2id'),
        'verifier': verifier,
    }


def write_metadata(vault_path: str, metadata: Dict[str, Any]) -> None:
    """
    Write the sidecar for a record file.

    Raises:
        OSError: If the file cannot be written.
    """
    _atomic_write(metadata_path(vault_path), json.dumps(metadata, indent=2))


def read_metadata(vault_path: str) -> Optional[Dict[str, Any]]:
    """
    Load the sidecar for a record file.

    Returns:
        Optional[dict]: Parsed metadata, or None if no sidecar exists.

    Raises:
        OSError: If the sidecar exists but cannot be read.
        VaultFormatError: If it is not valid JSON or misses required fields.
    """
    path = metadata_path(vault_path)
    if not os.path.exists(path):
        return None

    with open(path, 'r', encoding='utf-8') as f:
        try:
            metadata = json.load(f)
        except json.JSONDecodeError as e:
            raise VaultFormatError(f"metadata is not valid JSON: {e}") from e

    if not isinstance(metadata, dict):
        raise VaultFormatError("metadata must be a JSON object")

    missing = [field for field in REQUIRED_METADATA_FIELDS if field not in metadata]
    if missing:
        raise VaultFormatError(f"metadata missing fields: {', '.join(missing)}")

    return metadata


def metadata_salt(metadata: Dict[str, Any]) -> bytes:
    """
    Decode the salt stored in metadata.

    Raises:
        VaultFormatError: If the salt is not valid base64.
    """
    try:
        return base64.b64decode(metadata['salt'], validate=True)
    except (TypeError, ValueError) as e:
        raise VaultFormatError(f"metadata salt is invalid: {e}") from e


def metadata_kdf_params(metadata: Dict[str, Any]) -> Dict[str, int]:
    """
    Extract the Argon2id parameters a vault was created with.

    Raises:
        VaultFormatError: If a parameter is missing or not an integer.
    """
    kdf = metadata['kdf']
    params = {}
    for name in ('time_cost', 'memory_cost', 'parallelism'):
        value = kdf.get(name) if isinstance(kdf, dict) else None
        if not isinstance(value, int):
            raise VaultFormatError(f"metadata KDF parameter '{name}' is invalid")
        params[name] = value
    return params
