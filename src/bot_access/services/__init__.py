"""
bot_access.services

Service-layer package.

Responsibilities:
- Resolve roles and accessible bots for a principal.
- Own transaction boundaries for assignment and invitation mutations.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services should be pure Python and easily testable with fake clients/sessions.
