"""Test fixture package.

Contains fixtures for:
- In-memory user/region stores, transactions and geocoder
- FastAPI test application and async client
"""
