"""Encrypted Session Meta information.
   Encrypted Session keeps user-specific data in an encrypted, self-contained cookie.
"""
__title__ = 'encrypted_session'
__description__ = (
   'Encrypted Session keeps user-specific data in an encrypted, '
   'self-contained client-side cookie.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/encrypted-session'
