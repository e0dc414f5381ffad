"""Toofer defaults.

Storage key names are shared by every backend so a vault written through
one backend can be read back through another.
"""
import os

# Storage keys
VAULTS_INDEX_KEY = 'toofer_vaults'
VAULT_PREFIX = 'toofer_vault_'
LEGACY_VAULT_KEY = 'toofer_vault'

DEFAULT_VAULT_NAME = 'My Vault'
DEFAULT_ISSUER = 'Unknown'

# OTP defaults
DEFAULT_TIME_STEP = 30
DEFAULT_DIGITS = 6

DATA_DIR = os.environ.get(
    'TOOFER_DATA_DIR',
    os.path.join(os.path.expanduser('~'), '.toofer')
)
