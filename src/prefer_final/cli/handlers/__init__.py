from .check import handle_check

__all__ = [
  "handle_check",
]
