"""
FileShare backend.

Upload a file, share a time-limited link, track uploads per account.
"""

__version__ = "1.0.0"
