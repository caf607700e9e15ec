from .redact import redact
from .text import truncate

__all__ = [
    "redact",
    "truncate",
]
