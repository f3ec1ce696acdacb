"""
Database models - import all models here so metadata.create_all can discover them.
"""
from crawlsync.models.order import Order
from crawlsync.models.crawl import Crawl

__all__ = [
    "Order",
    "Crawl",
]
