"""
bot_access.api.routers

HTTP routers.
"""
