"""Toofer Meta information.
   Toofer keeps two-factor accounts in passphrase-encrypted local vaults.
"""
__title__ = 'toofer'
__description__ = (
   'Toofer keeps two-factor authentication accounts in '
   'passphrase-encrypted local vaults and generates TOTP codes.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Toofer Authors'
__author__ = 'Toofer Authors'
__author_email__ = 'dev@toofer.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/toofer-app/toofer'
