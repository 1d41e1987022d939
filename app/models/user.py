# app/models/user.py
# Note: User is defined in core/auth.py together with the fastapi-users wiring,
# so it is re-exported here for code that imports every model from app.models.

from app.core.auth import User

__all__ = ["User"]
