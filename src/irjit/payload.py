"""Encrypted IR payload. Generated by irjit-seal."""

CIPHERTEXT = b""

KEY = b""
