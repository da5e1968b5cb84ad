"""API routers.

This package contains the FastAPI routers mounted by the application.
"""
