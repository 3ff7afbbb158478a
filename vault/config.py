"""
PassVault Configuration Defaults

Module-level settings shared by the vault engine and the command-line front end.
Command-line flags override the path and auto-lock values at runtime.
"""

# ==============================================================================
# STORAGE
# ==============================================================================

# Default location of the encrypted record file
DEFAULT_VAULT_PATH = "passvault.dat"

# Suffix of the JSON sidecar holding the salt and verification token
METADATA_SUFFIX = ".meta"

# Suffix of the failed-unlock tracking file
ATTEMPTS_SUFFIX = ".attempts"

# Sidecar format version (increment for breaking changes)
VAULT_FORMAT_VERSION = "1.0"

# ==============================================================================
# SESSION
# ==============================================================================

# Idle minutes before the vault locks itself (0 disables auto-lock)
AUTO_LOCK_MINUTES = 10

# Minimum accepted master passphrase length
MIN_MASTER_PASSWORD_LENGTH = 6

# Failed unlock attempts allowed inside ATTEMPT_WINDOW before LOCKOUT_TIME applies
MAX_UNLOCK_ATTEMPTS = 5
LOCKOUT_TIME = 300      # 5 minutes
ATTEMPT_WINDOW = 900    # 15 minutes

# ==============================================================================
# KEY DERIVATION (Argon2id)
# ==============================================================================

# Time cost: number of passes over memory
ARGON2_TIME_COST = 2

# Memory cost in KiB (64 MiB)
ARGON2_MEMORY_COST = 65536

# Number of parallel lanes
ARGON2_PARALLELISM = 4

# ==============================================================================
# PASSWORD GENERATION AND HEALTH
# ==============================================================================

GENERATOR_MIN_LENGTH = 8
GENERATOR_MAX_LENGTH = 32
GENERATOR_DEFAULT_LENGTH = 16

# Entries scoring below this are counted as weak
WEAK_SCORE_THRESHOLD = 60

# Entries not modified for longer than this are counted as old (~6 months)
OLD_PASSWORD_DAYS = 180

# Seconds before a copied password is wiped from the clipboard
CLIPBOARD_CLEAR_SECONDS = 30
