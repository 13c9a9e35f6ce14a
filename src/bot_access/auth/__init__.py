"""
bot_access.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation.
- Principal and resolved-access types.
- Elevation grants (the only way to open a policy-bypassing session).
- FastAPI auth dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Role/resource resolution lives in `services`; this package only models its results.
