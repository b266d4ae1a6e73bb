"""
Shared service utilities.

- http.py - pre-configured requests session with retry/backoff and timeout
"""
