"""Vault Sync Meta information.
   Vault Sync encrypts a password vault on the client and keeps it
   in a remote versioned JSON document.
"""
__title__ = 'vault_sync'
__description__ = (
   'Client-side encrypted password vault synchronization '
   'over a remote JSON document store.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/vault-sync'
