"""FastAPI service for Fahrenheit to Celsius conversion.

This package provides the REST API endpoints that convert temperatures
and return them as JSON, Protocol Buffers or plain text.
"""

__version__ = "1.0.0"
