"""Business logic services.

This package contains the temperature conversion logic and the reply
serialization used by the API endpoints.
"""
