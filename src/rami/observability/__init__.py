"""
Rami - Observability Package.

Provides:
- Per-session JSONL logging for the planting wizard
"""

from rami.observability.session_logger import SessionLogger

__all__ = [
    "SessionLogger",
]
