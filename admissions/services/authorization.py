"""Role capability table and the guard every service consults.

Each role maps a resource kind and action to a ``Scope``:

* ``all``            unconditional
* ``owner``          the caller is the parent who owns the record
* ``interviewer``    the caller is the staff member assigned to the interview
* ``teaching_staff`` the record is a teaching staff member
* ``none``           never

Denials always carry the same message, and a missing record is only reported
as missing to callers whose scope is ``all``.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from admissions.errors import NotFoundError, UnauthorizedError
from admissions.models.application import Application
from admissions.models.document import Document
from admissions.models.interview import Interview
from admissions.models.staff import Staff, StaffType
from admissions.models.student import Student
from admissions.models.user import UserRole
from admissions.services.common import coerce_uuid

ModelT = TypeVar("ModelT")


class Action(str, enum.Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"
    conduct = "conduct"


class Scope(str, enum.Enum):
    none = "none"
    owner = "owner"
    interviewer = "interviewer"
    teaching_staff = "teaching_staff"
    all = "all"


class ResourceKind(str, enum.Enum):
    application = "application"
    document = "document"
    student = "student"
    staff = "staff"
    interview = "interview"


@dataclass(frozen=True)
class Actor:
    id: uuid.UUID
    role: UserRole


_KINDS: dict[type, ResourceKind] = {
    Application: ResourceKind.application,
    Document: ResourceKind.document,
    Student: ResourceKind.student,
    Staff: ResourceKind.staff,
    Interview: ResourceKind.interview,
}

_LABELS = {
    ResourceKind.application: "Application",
    ResourceKind.document: "Document",
    ResourceKind.student: "Student",
    ResourceKind.staff: "Staff",
    ResourceKind.interview: "Interview",
}

Capabilities = dict[ResourceKind, dict[Action, Scope]]

_SCHOOL_ADMIN: Capabilities = {
    ResourceKind.application: {Action.read: Scope.all, Action.update: Scope.all},
    ResourceKind.document: {
        Action.read: Scope.all,
        Action.create: Scope.all,
        Action.update: Scope.all,
        Action.delete: Scope.all,
    },
    ResourceKind.student: {Action.read: Scope.all},
    ResourceKind.staff: {
        Action.read: Scope.all,
        Action.create: Scope.all,
        Action.update: Scope.all,
    },
    ResourceKind.interview: {
        Action.read: Scope.all,
        Action.create: Scope.all,
        Action.conduct: Scope.interviewer,
    },
}

_ADMISSION_OFFICER: Capabilities = {
    ResourceKind.application: {Action.read: Scope.all, Action.update: Scope.all},
    ResourceKind.document: {Action.read: Scope.all, Action.update: Scope.all},
    ResourceKind.student: {Action.read: Scope.all},
    ResourceKind.staff: {Action.read: Scope.teaching_staff},
    ResourceKind.interview: {
        Action.read: Scope.all,
        Action.create: Scope.all,
        Action.conduct: Scope.interviewer,
    },
}

_TEACHER: Capabilities = {
    ResourceKind.application: {Action.read: Scope.interviewer},
    ResourceKind.document: {Action.read: Scope.interviewer},
    ResourceKind.student: {Action.read: Scope.all},
    ResourceKind.staff: {Action.read: Scope.teaching_staff},
    ResourceKind.interview: {
        Action.read: Scope.interviewer,
        Action.conduct: Scope.interviewer,
    },
}

_PARENT: Capabilities = {
    ResourceKind.application: {Action.read: Scope.owner, Action.create: Scope.owner},
    ResourceKind.document: {Action.read: Scope.owner, Action.create: Scope.owner},
    ResourceKind.student: {
        Action.read: Scope.owner,
        Action.create: Scope.owner,
        Action.update: Scope.owner,
    },
    ResourceKind.interview: {Action.read: Scope.owner},
}

CAPABILITIES: dict[UserRole, Capabilities] = {
    UserRole.super_admin: _SCHOOL_ADMIN,
    UserRole.school_admin: _SCHOOL_ADMIN,
    UserRole.admission_officer: _ADMISSION_OFFICER,
    UserRole.teacher: _TEACHER,
    UserRole.parent: _PARENT,
    UserRole.student: {},
}


def scope_for(role: UserRole, kind: ResourceKind, action: Action) -> Scope:
    return CAPABILITIES.get(role, {}).get(kind, {}).get(action, Scope.none)


class AuthorizationGuard:
    def __init__(self, db: Session) -> None:
        self.db = db

    def permits(self, actor: Actor, kind: ResourceKind, action: Action) -> bool:
        """True when the role has any scope at all for ``kind``/``action``."""
        return scope_for(actor.role, kind, action) != Scope.none

    def ensure(self, actor: Actor, kind: ResourceKind, action: Action) -> Scope:
        scope = scope_for(actor.role, kind, action)
        if scope == Scope.none:
            raise UnauthorizedError()
        return scope

    def can_access(self, actor: Actor, resource: Any, action: Action) -> bool:
        kind = _KINDS.get(type(resource))
        if kind is None:
            return False
        scope = scope_for(actor.role, kind, action)
        if scope == Scope.all:
            return True
        if scope == Scope.owner:
            return self._is_owner(actor, resource)
        if scope == Scope.interviewer:
            return self._is_interviewer(actor, resource)
        if scope == Scope.teaching_staff:
            return isinstance(resource, Staff) and resource.type == StaffType.teaching
        return False

    def ensure_access(self, actor: Actor, resource: Any, action: Action) -> None:
        if not self.can_access(actor, resource, action):
            raise UnauthorizedError()

    def load(
        self, model: type[ModelT], entity_id: Any, actor: Actor, action: Action
    ) -> ModelT:
        """Fetch ``model`` by id on behalf of ``actor``.

        Raises ``NotFoundError`` only for unconditional scopes; everyone else
        gets ``UnauthorizedError`` whether or not the record exists.
        """
        kind = _KINDS[model]
        scope = self.ensure(actor, kind, action)
        try:
            key = coerce_uuid(entity_id)
        except ValueError:
            key = None
        entity = self.db.get(model, key) if key else None
        if entity is None:
            if scope == Scope.all:
                raise NotFoundError(f"{_LABELS[kind]} not found")
            raise UnauthorizedError()
        self.ensure_access(actor, entity, action)
        return entity

    # ── Scope predicates ─────────────────────────────────

    def _is_owner(self, actor: Actor, resource: Any) -> bool:
        if isinstance(resource, Student):
            return resource.parent_user_id == actor.id
        if isinstance(resource, Application):
            return resource.user_id == actor.id
        if isinstance(resource, Interview):
            return self._application_owned_by(resource.application_id, actor.id)
        if isinstance(resource, Document):
            if resource.application_id is not None:
                return self._application_owned_by(resource.application_id, actor.id)
            if resource.student_id is not None:
                student = self.db.get(Student, resource.student_id)
                return student is not None and student.parent_user_id == actor.id
        return False

    def _application_owned_by(self, application_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        application = self.db.get(Application, application_id)
        return application is not None and application.user_id == user_id

    def staff_ids_for(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        stmt = select(Staff.id).where(Staff.user_id == user_id)
        return list(self.db.scalars(stmt).all())

    def _is_interviewer(self, actor: Actor, resource: Any) -> bool:
        if isinstance(resource, Interview):
            staff = self.db.get(Staff, resource.interviewer_id)
            return staff is not None and staff.user_id == actor.id
        if isinstance(resource, Application):
            application_id = resource.id
        elif isinstance(resource, Document) and resource.application_id is not None:
            application_id = resource.application_id
        else:
            return False
        stmt = select(
            exists().where(
                Interview.application_id == application_id,
                Interview.interviewer_id == Staff.id,
                Staff.user_id == actor.id,
            )
        )
        return bool(self.db.scalar(stmt))
