"""Catalog package: card entities and the providers that load them."""

__all__ = [
    "db",
    "entities",
    "provider",
]
