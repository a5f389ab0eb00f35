"""Document uploads, verification and the completeness tracker."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from admissions.config import settings
from admissions.errors import ConflictError, ValidationFailedError, command, query
from admissions.models.application import Application
from admissions.models.document import REQUIRED_DOCUMENT_TYPES, Document, DocumentType
from admissions.schemas.document import DocumentRead, DocumentUpload, DocumentVerify
from admissions.services.authorization import (
    Action,
    Actor,
    AuthorizationGuard,
    ResourceKind,
)
from admissions.services.clock import Clock, system_clock
from admissions.services.common import integrity_error_matches, parse_payload

logger = logging.getLogger(__name__)


def required_types() -> frozenset[DocumentType]:
    return REQUIRED_DOCUMENT_TYPES


def documents_for(db: Session, application_id: UUID) -> list[Document]:
    stmt = (
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(Document.uploaded_at.asc(), Document.created_at.asc())
    )
    return list(db.scalars(stmt).all())


def completeness(documents: list[Document]) -> tuple[bool, bool]:
    """Return ``(complete, fully_verified)`` for one application's documents.

    Complete means every required type is present; fully verified additionally
    needs every present document marked verified.
    """
    present = {document.type for document in documents}
    complete = REQUIRED_DOCUMENT_TYPES.issubset(present)
    verified = complete and all(document.is_verified for document in documents)
    return complete, verified


def is_complete(db: Session, application_id: UUID) -> bool:
    return completeness(documents_for(db, application_id))[0]


def is_fully_verified(db: Session, application_id: UUID) -> bool:
    return completeness(documents_for(db, application_id))[1]


def _max_size_label() -> str:
    return f"{settings.document_max_size_bytes // (1024 * 1024)}MB"


class DocumentService:
    def __init__(self, db: Session, clock: Clock = system_clock) -> None:
        self.db = db
        self.clock = clock
        self.guard = AuthorizationGuard(db)

    @command
    def upload(self, actor: Actor, payload: DocumentUpload | dict[str, Any]) -> Document:
        data = parse_payload(DocumentUpload, payload)
        self.guard.ensure(actor, ResourceKind.document, Action.create)
        # Upload rights follow read access to the application.
        application = self.guard.load(
            Application, data.application_id, actor, Action.read
        )

        if data.file_size > settings.document_max_size_bytes:
            raise ValidationFailedError(
                f"File size exceeds maximum limit of {_max_size_label()}"
            )

        file_name = data.file_name.strip()
        name_taken = self.db.scalar(
            select(Document.id).where(Document.file_name == file_name)
        )
        if name_taken:
            raise ConflictError("A file with this name already exists")

        type_taken = self.db.scalar(
            select(Document.id).where(
                Document.application_id == application.id,
                Document.type == data.type,
            )
        )
        if type_taken:
            raise ConflictError(
                f"{data.type.value} has already been uploaded for this application"
            )

        document = Document(
            student_id=application.student_id,
            application_id=application.id,
            type=data.type,
            file_name=file_name,
            file_path=f"applications/{application.id}/{data.type.value}/{file_name}",
            file_url=data.file_url,
            content_type=data.content_type,
            file_size=data.file_size,
            description=data.description,
            uploaded_at=self.clock.now(),
            uploaded_by=actor.id,
            is_verified=False,
        )
        try:
            with self.db.begin_nested():
                self.db.add(document)
                self.db.flush()
        except IntegrityError as error:
            if integrity_error_matches(
                error, "uq_documents_application_type", "documents.application_id", "documents.type"
            ):
                raise ConflictError(
                    f"{data.type.value} has already been uploaded for this application"
                ) from error
            if integrity_error_matches(error, "uq_documents_file_name", "documents.file_name"):
                raise ConflictError("A file with this name already exists") from error
            raise

        logger.info(
            "Uploaded %s for application %s",
            data.type.value,
            application.id,
            extra={
                "actor_id": str(actor.id),
                "application_id": str(application.id),
                "document_id": str(document.id),
            },
        )
        return document

    @command
    def verify(
        self,
        actor: Actor,
        document_id: UUID | str,
        payload: DocumentVerify | dict[str, Any] | None = None,
    ) -> Document:
        data = parse_payload(DocumentVerify, payload or {})
        document = self.guard.load(Document, document_id, actor, Action.update)

        document.is_verified = data.is_verified
        document.verification_notes = data.verification_notes
        document.verified_at = self.clock.now() if data.is_verified else None
        document.verified_by = actor.id if data.is_verified else None
        self.db.flush()
        logger.info(
            "Document %s marked %s",
            document.id,
            document.verification_label.lower(),
            extra={"actor_id": str(actor.id), "document_id": str(document.id)},
        )

        if document.application_id is not None and is_fully_verified(
            self.db, document.application_id
        ):
            logger.info(
                "All documents verified for application %s",
                document.application_id,
                extra={"application_id": str(document.application_id)},
            )
        return document

    @command
    def delete(self, actor: Actor, document_id: UUID | str) -> None:
        document = self.guard.load(Document, document_id, actor, Action.delete)
        self.db.delete(document)
        self.db.flush()
        logger.info(
            "Deleted document %s",
            document_id,
            extra={"actor_id": str(actor.id), "document_id": str(document_id)},
        )

    # ── Queries ──────────────────────────────────────────

    @query
    def list_for_application(
        self, actor: Actor, application_id: UUID | str
    ) -> list[DocumentRead]:
        self.guard.ensure(actor, ResourceKind.document, Action.read)
        application = self.guard.load(Application, application_id, actor, Action.read)
        return [
            DocumentRead.model_validate(document)
            for document in documents_for(self.db, application.id)
        ]

    @query
    def is_complete(self, actor: Actor, application_id: UUID | str) -> bool:
        application = self.guard.load(Application, application_id, actor, Action.read)
        return is_complete(self.db, application.id)

    @query
    def is_fully_verified(self, actor: Actor, application_id: UUID | str) -> bool:
        application = self.guard.load(Application, application_id, actor, Action.read)
        return is_fully_verified(self.db, application.id)

    def required_types(self) -> frozenset[DocumentType]:
        return required_types()
