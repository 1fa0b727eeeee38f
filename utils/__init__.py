"""Bookstore - Utilities Package

- Form decoding and validation (validators.py)
- CLI output helpers (ui_helpers.py)
"""
