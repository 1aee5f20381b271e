"""
HR Kernel - approval workflow engine

Routes leave and salary advance requests through their approval steps:
- Static, validated step sequences per request type
- Append-only step history with a status chain
- Role notifications for every transition
- Pluggable persistence (in-memory or SQLAlchemy)
"""

__version__ = "0.1.0"
