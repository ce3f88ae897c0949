# bankmatch/routers/__init__.py

from bankmatch.routers import health
from bankmatch.routers import bank_transactions
from bankmatch.routers import cron

__all__ = ["health", "bank_transactions", "cron"]
