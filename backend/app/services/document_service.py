"""
Document Service - generates paid documents

Flow for one document:
    validate type -> resolve cost -> check balance -> render PDF -> store file
    -> deduct credits + insert GeneratedDocument + bump template usage (one commit)

If anything after the file is stored fails, the file is deleted and the
transaction rolled back, so a failed generation leaves no row, file or charge.
"""

from typing import Optional, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from starlette.concurrency import run_in_threadpool

from app.core.exceptions import (
    DocumentNotFoundError,
    InsufficientCreditsError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.models.document import DocumentTemplate, GeneratedDocument, DocumentStatus
from app.models.school import School
from app.models.user import User
from app.services.document_catalog import get_document_type, generate_verification_code
from app.services.document_storage import document_storage
from app.services.pdf_renderer import pdf_renderer
from app.utils.credit_manager import credit_manager


class DocumentService:
    """Credit-charged PDF generation for the document catalog"""

    @staticmethod
    async def get_template(
        db: AsyncSession,
        school_id: str,
        template_id: str,
        active_only: bool = True
    ) -> DocumentTemplate:
        """Template visible to the school (its own or a global one)"""
        query = select(DocumentTemplate).where(
            DocumentTemplate.id == template_id,
            or_(DocumentTemplate.school_id == school_id, DocumentTemplate.school_id.is_(None)),
        )
        if active_only:
            query = query.where(DocumentTemplate.is_active.is_(True))
        result = await db.execute(query)
        template = result.scalar_one_or_none()
        if not template:
            raise ResourceNotFoundError("Template", template_id)
        return template

    async def generate(
        self,
        db: AsyncSession,
        user: User,
        document_type: str,
        template_id: Optional[str] = None,
        title: Optional[str] = None,
        recipient_name: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> Tuple[GeneratedDocument, int]:
        """
        Generate, store and charge for one document.

        Returns:
            (document, remaining_credits)
        """
        school_id = str(user.school_id)
        entry = get_document_type(document_type)

        template = None
        if template_id:
            template = await self.get_template(db, school_id, template_id)
            if template.type != document_type:
                raise ValidationError(
                    f"Template is for '{template.type}', not '{document_type}'",
                    field="template_id",
                )

        cost = template.required_credits if template else entry["credits"]

        # Fail before rendering when the school obviously can't pay
        balance = await credit_manager.get_or_create_balance(db, school_id)
        if balance.current_credits < cost:
            raise InsufficientCreditsError(required=cost, available=balance.current_credits)

        school = await db.get(School, school_id)
        document_id = generate_uuid()
        verification_code = generate_verification_code()
        title = title or entry["name"]
        orientation = ((template.settings or {}).get("orientation") if template else None) or "portrait"

        pdf_bytes = await run_in_threadpool(
            pdf_renderer.render_document,
            document_type=document_type,
            title=title,
            verification_code=verification_code,
            recipient_name=recipient_name,
            data=data,
            school=school,
            orientation=orientation,
        )

        file_key = document_storage.build_key(school_id, "documents", f"{document_id}.pdf")
        file_size = await document_storage.save(file_key, pdf_bytes)

        try:
            transaction = await credit_manager.deduct_credits(
                db,
                school_id=school_id,
                amount=cost,
                feature=document_type,
                user_id=user.id,
                description=f"Generated {entry['name']}: {title}",
                document_id=document_id,
                metadata={"template_id": template_id, "recipient_name": recipient_name},
            )

            document = GeneratedDocument(
                id=document_id,
                school_id=school_id,
                user_id=str(user.id),
                template_id=template.id if template else None,
                document_type=document_type,
                title=title,
                recipient_name=recipient_name,
                data=data or {},
                file_key=file_key,
                file_size=file_size,
                status=DocumentStatus.COMPLETED.value,
                credits_used=cost,
                verification_code=verification_code,
            )
            db.add(document)

            if template:
                template.usage_count = (template.usage_count or 0) + 1

            await db.commit()
        except Exception:
            await db.rollback()
            await document_storage.delete(file_key)
            raise

        await db.refresh(document)
        logger.info(
            f"[Documents] Generated {document_type} {document_id} for school {school_id} "
            f"({cost} credits, {transaction.balance_after} left)"
        )
        return document, transaction.balance_after

    @staticmethod
    async def get_document(db: AsyncSession, school_id: str, document_id: str) -> GeneratedDocument:
        result = await db.execute(
            select(GeneratedDocument).where(
                GeneratedDocument.id == document_id,
                GeneratedDocument.school_id == school_id,
            )
        )
        document = result.scalar_one_or_none()
        if not document:
            raise DocumentNotFoundError(document_id)
        return document

    async def load_pdf(self, document: GeneratedDocument) -> bytes:
        if not document.file_key:
            raise ResourceNotFoundError("Document file", document.id)
        return await document_storage.load(document.file_key)


# Singleton instance
document_service = DocumentService()
