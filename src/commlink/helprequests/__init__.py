"""
Help-request subsystem.

Components:
- request_models.py: data structures (Request, Message, User, Role, Caller)
- sqlite_base.py: shared SQLite connection/migration plumbing
- request_store.py: requests + messages storage, atomic accept, scoped cleanup
- user_store.py: user directory used to resolve reminder recipients
- request_lifecycle.py: create/accept/send/list with ownership rules
- reminder_scheduler.py: periodic reminder and expiry-cleanup runs
"""
