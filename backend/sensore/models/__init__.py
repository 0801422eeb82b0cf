from sensore.models.user import User, USER_TYPES

__all__ = ["User", "USER_TYPES"]
