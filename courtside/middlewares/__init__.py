from courtside.middlewares.db_middleware import DatabaseMiddleware
from courtside.middlewares.identity_middleware import IdentityMiddleware

__all__ = ["DatabaseMiddleware", "IdentityMiddleware"]
