"""
CommLink: help-request lifecycle and reminder/expiry engine.

Packages:
- core/: ports (Protocols), clock, errors, AppState
- helprequests/: models, SQLite stores, lifecycle engine, reminder scheduler
- notify/: reminder delivery (HTTP relay, logging fallback)
- cli/: composition root and host entrypoint
"""

__version__ = "0.3.0"
