from agency_admin.api.routes import analytics, audit, auth, errors

__all__ = [
    "auth",
    "errors",
    "analytics",
    "audit",
]
