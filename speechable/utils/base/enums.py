from enum import Enum


class BaseEnum(Enum):
    @classmethod
    def choices(cls):
        return [(item.value, item.name) for item in cls]

    @classmethod
    def values(cls):
        return [item.value for item in cls]


class UserRole(BaseEnum):
    USER = "user"
    ADMIN = "admin"


class AuthProvider(BaseEnum):
    PASSWORD = "password"
    EXTERNAL = "external"
