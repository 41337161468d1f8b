"""
API routers.
"""

from app.routers import account, auth, dev, health, orders, users

__all__ = ["account", "auth", "dev", "health", "orders", "users"]
