"""
bot_access.identity_clients

Identity provider client package.

Responsibilities:
- Provide client interfaces for the identity provider's admin API
  (account lookup, invitation shells, account deletion).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services depend on the `IdentityAdmin` protocol, not on HTTP details.
