from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from datetime import datetime
from typing import Optional

from app.api.deps import get_school_user, get_current_admin, get_staff_user
from app.core.database import get_db
from app.core.exceptions import AuthorizationError
from app.core.logging_config import logger
from app.models.document import DocumentTemplate, GeneratedDocument, DocumentStatus
from app.models.user import User
from app.schemas.document import (
    TemplateCreate,
    TemplateUpdate,
    TemplateResponse,
    DocumentGenerate,
    GeneratedDocumentResponse,
)
from app.services.document_catalog import (
    CATEGORIES,
    POPULAR_TEMPLATE_THRESHOLD,
    get_document_type,
    list_document_types,
)
from app.services.document_service import document_service
from app.utils.credit_manager import month_start
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


def catalog_payload(category: Optional[str] = None) -> dict:
    return {
        "types": list_document_types(category),
        "categories": [{"key": key, **names} for key, names in CATEGORIES.items()],
    }


@router.get("/types")
async def get_document_types(
    category: Optional[str] = None,
    _: User = Depends(get_school_user)
):
    """Document catalog with per-type credit cost"""
    return success(catalog_payload(category))


# ==================== Templates ====================

@router.get("/templates")
async def list_templates(
    type: Optional[str] = None,
    category: Optional[str] = None,
    include_inactive: bool = False,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    """Global templates plus the school's own, each with generation_count and is_popular"""
    school_id = str(current_user.school_id)
    query = select(DocumentTemplate).where(
        or_(DocumentTemplate.school_id == school_id, DocumentTemplate.school_id.is_(None))
    )
    if type:
        query = query.where(DocumentTemplate.type == type)
    if category:
        query = query.where(DocumentTemplate.category == category)
    if not include_inactive:
        query = query.where(DocumentTemplate.is_active.is_(True))
    templates = list((await db.execute(query.order_by(DocumentTemplate.type, DocumentTemplate.name))).scalars().all())

    # Generations by this school per template
    counts_result = await db.execute(
        select(GeneratedDocument.template_id, func.count(GeneratedDocument.id))
        .where(GeneratedDocument.school_id == school_id, GeneratedDocument.template_id.isnot(None))
        .group_by(GeneratedDocument.template_id)
    )
    counts = dict(counts_result.all())

    items = []
    for template in templates:
        item = TemplateResponse.model_validate(template).model_dump(mode="json")
        generation_count = counts.get(template.id, 0)
        item["generation_count"] = generation_count
        item["is_popular"] = generation_count > POPULAR_TEMPLATE_THRESHOLD
        items.append(item)

    return success(items)


@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_template(
    data: TemplateCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    entry = get_document_type(data.type)
    values = data.model_dump()
    values["required_credits"] = data.required_credits or entry["credits"]
    values["category"] = data.category or entry["category"]
    values["category_bn"] = data.category_bn or CATEGORIES[entry["category"]]["name_bn"]
    values["name_bn"] = data.name_bn or entry["name_bn"]

    template = DocumentTemplate(school_id=str(admin.school_id), **values)
    db.add(template)
    await db.commit()
    await db.refresh(template)

    logger.info(f"[Documents] Template '{template.name}' ({template.type}) created in school {admin.school_id}")
    return success(TemplateResponse.model_validate(template).model_dump(mode="json"))


@router.get("/templates/{template_id}")
async def get_template(
    template_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    template = await document_service.get_template(db, str(current_user.school_id), template_id, active_only=False)
    return success(TemplateResponse.model_validate(template).model_dump(mode="json"))


@router.put("/templates/{template_id}")
async def update_template(
    template_id: str,
    data: TemplateUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    template = await document_service.get_template(db, str(admin.school_id), template_id, active_only=False)
    if template.school_id is None:
        raise AuthorizationError("Global templates cannot be modified")

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "required_credits" and value is None:
            continue
        setattr(template, field, value)
    await db.commit()
    await db.refresh(template)

    return success(TemplateResponse.model_validate(template).model_dump(mode="json"))


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    template = await document_service.get_template(db, str(admin.school_id), template_id, active_only=False)
    if template.school_id is None:
        raise AuthorizationError("Global templates cannot be deleted")

    await db.delete(template)
    await db.commit()
    return success(message="Template deleted")


# ==================== Generation ====================

@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_document(
    data: DocumentGenerate,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Render and store a PDF, charging the type's (or template's) credit cost.
    Insufficient credits: 402 and nothing is created.
    """
    document, remaining = await document_service.generate(
        db,
        current_user,
        document_type=data.document_type,
        template_id=data.template_id,
        title=data.title,
        recipient_name=data.recipient_name,
        data=data.data,
    )
    return success({
        "document_id": document.id,
        "download_url": document.download_url,
        "verification_code": document.verification_code,
        "credits_used": document.credits_used,
        "remaining_credits": remaining,
    })


@router.get("/generated")
async def list_generated(
    document_type: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(GeneratedDocument).where(GeneratedDocument.school_id == str(current_user.school_id))
    if document_type:
        query = query.where(GeneratedDocument.document_type == document_type)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(GeneratedDocument.title.ilike(pattern), GeneratedDocument.recipient_name.ilike(pattern)))
    query = query.order_by(GeneratedDocument.created_at.desc())

    return success(await paginate(
        db, query, pagination.page, pagination.page_size, item_schema=GeneratedDocumentResponse
    ))


@router.get("/generated/{document_id}")
async def get_generated(
    document_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    document = await document_service.get_document(db, str(current_user.school_id), document_id)
    return success(GeneratedDocumentResponse.model_validate(document).model_dump(mode="json"))


@router.get("/generated/{document_id}/download")
async def download_generated(
    document_id: str,
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    document = await document_service.get_document(db, str(current_user.school_id), document_id)
    content = await document_service.load_pdf(document)
    filename = f"{document.document_type}-{document.verification_code}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats")
async def document_stats(
    current_user: User = Depends(get_school_user),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)
    completed = (
        GeneratedDocument.school_id == school_id,
        GeneratedDocument.status == DocumentStatus.COMPLETED.value,
    )

    totals = await db.execute(
        select(func.count(GeneratedDocument.id), func.coalesce(func.sum(GeneratedDocument.credits_used), 0))
        .where(*completed)
    )
    total_generated, credits_used = totals.one()

    monthly = await db.execute(
        select(func.count(GeneratedDocument.id))
        .where(*completed, GeneratedDocument.created_at >= month_start(datetime.utcnow()))
    )
    by_type = await db.execute(
        select(GeneratedDocument.document_type, func.count(GeneratedDocument.id))
        .where(*completed)
        .group_by(GeneratedDocument.document_type)
    )

    return success({
        "total_generated": total_generated,
        "credits_used": int(credits_used or 0),
        "monthly_generated": monthly.scalar() or 0,
        "by_type": {doc_type: count for doc_type, count in by_type.all()},
    })
