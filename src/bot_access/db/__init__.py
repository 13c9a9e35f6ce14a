"""
bot_access.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories and the elevated gateway.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Two engines exist at runtime: the standard (policy-filtered) one and the
# elevated one. Only `db.elevated` touches the latter.
