"""Backend package exposing the Split Bills REST API."""

__all__ = [
    "database",
    "models",
    "schemas",
    "crud",
    "server",
]
