"""
Shared service utilities.

- http.py - async HTTP client (httpx) with retry, backoff, and error mapping
"""
