"""Test fixture package for the post oracle.

Contains fixtures for:
- An in-memory ledger
- Mocked scoring and archival services
- The FastAPI intake app
"""
