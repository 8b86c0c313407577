# apps/accounts/context.py
from dataclasses import dataclass

from apps.applications.exceptions import Forbidden, Unauthenticated


@dataclass(frozen=True)
class Actor:
    """Who is performing a core operation, resolved once per request."""

    id: int
    role: str

    @classmethod
    def from_user(cls, user):
        if user is None or not user.is_authenticated:
            raise Unauthenticated()
        return cls(id=user.pk, role='admin' if user.is_admin else user.role)

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_student(self):
        return self.role == 'student'

    def require_admin(self):
        if not self.is_admin:
            raise Forbidden('Admin access required')

    def require_student(self):
        if not self.is_student:
            raise Forbidden('Student access required')
