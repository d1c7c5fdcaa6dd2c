from classsched.models.schedule import Schedule  # noqa: F401
from classsched.models.user import Account, AuthSession, User  # noqa: F401
