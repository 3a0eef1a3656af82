"""
Admit Card Service - exam admit cards with credit charging and an audit trail
"""

from typing import Dict, Any, List, Optional
from datetime import date, datetime, timedelta
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.config import settings
from app.core.exceptions import ShikkhaError, ResourceNotFoundError, StudentNotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.models.admit_card import AdmitCard, AdmitCardHistory, AdmitCardStatus
from app.models.student import Student
from app.models.user import User
from app.schemas.admit_card import CandidateDetails, ExamDetails
from app.services.document_catalog import get_cost, generate_card_number, generate_verification_code
from app.utils.credit_manager import credit_manager

ADMIT_CARD_FEATURE = "admit-card"
VALID_STATUSES = {status.value for status in AdmitCardStatus}


def _first_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    return f"{field}: {error.get('msg')}" if field else error.get("msg", "Invalid data")


class AdmitCardService:
    """Create, track and verify admit cards"""

    @staticmethod
    async def _unique_card_number(db: AsyncSession, year: int) -> str:
        for _ in range(5):
            card_number = generate_card_number(year)
            exists = await db.execute(select(AdmitCard.id).where(AdmitCard.card_number == card_number))
            if exists.scalar_one_or_none() is None:
                return card_number
        raise ShikkhaError("Could not allocate a unique card number", code="CARD_NUMBER_EXHAUSTED")

    @staticmethod
    def add_history(
        db: AsyncSession,
        card: AdmitCard,
        action: str,
        user: Optional[User] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AdmitCardHistory:
        entry = AdmitCardHistory(
            admit_card_id=card.id,
            action=action,
            performed_by=str(user.id) if user else None,
            details=details,
        )
        db.add(entry)
        return entry

    async def create_card(
        self,
        db: AsyncSession,
        user: User,
        candidate: CandidateDetails,
        exam: ExamDetails
    ) -> AdmitCard:
        """
        Create one admit card and charge for it. Flushes only; the caller commits.

        Credits are deducted before anything is added to the session, so a
        school that can't pay leaves nothing behind.
        """
        school_id = str(user.school_id)

        if candidate.student_id:
            student = await db.execute(
                select(Student.id).where(
                    Student.id == candidate.student_id,
                    Student.school_id == school_id,
                )
            )
            if student.scalar_one_or_none() is None:
                raise StudentNotFoundError(candidate.student_id)

        cost = get_cost(ADMIT_CARD_FEATURE)
        card_id = generate_uuid()
        year = exam.exam_date.year if exam.exam_date else datetime.utcnow().year
        card_number = await self._unique_card_number(db, year)
        verification_code = generate_verification_code(12)
        valid_until = None
        if exam.exam_date:
            valid_until = exam.exam_date + timedelta(days=settings.ADMIT_CARD_VALIDITY_DAYS)

        await credit_manager.deduct_credits(
            db,
            school_id=school_id,
            amount=cost,
            feature=ADMIT_CARD_FEATURE,
            user_id=user.id,
            description=f"Admit card {card_number} for {candidate.student_name}",
            document_id=card_id,
            metadata={"exam_name": exam.exam_name},
        )

        card = AdmitCard(
            id=card_id,
            school_id=school_id,
            student_id=candidate.student_id,
            template_id=exam.template_id,
            card_number=card_number,
            student_name=candidate.student_name,
            student_name_bn=candidate.student_name_bn,
            roll_number=candidate.roll_number,
            registration_number=candidate.registration_number,
            class_name=candidate.class_name,
            section=candidate.section,
            photo_url=candidate.photo_url,
            exam_type=exam.exam_type,
            exam_name=exam.exam_name,
            exam_name_bn=exam.exam_name_bn,
            exam_center=exam.exam_center,
            exam_date=exam.exam_date,
            subjects=exam.subjects or [],
            verification_code=verification_code,
            qr_data={
                "card_number": card_number,
                "verification_code": verification_code,
                "student_name": candidate.student_name,
                "roll_number": candidate.roll_number,
                "exam_name": exam.exam_name,
                "verify_url": settings.get_verify_url(verification_code),
            },
            valid_until=valid_until,
            status=AdmitCardStatus.GENERATED.value,
            credits_used=cost,
            created_by=str(user.id),
        )
        db.add(card)
        self.add_history(db, card, "generated", user, {"card_number": card_number})
        await db.flush()

        logger.info(f"[AdmitCards] Created {card_number} for {candidate.student_name}")
        return card

    async def create_batch(
        self,
        db: AsyncSession,
        user: User,
        students: List[Dict[str, Any]],
        exam: ExamDetails
    ) -> Dict[str, Any]:
        """
        One card per row. A row that fails validation, references an unknown
        student or can't be paid for is reported and the rest continue.
        """
        cards: List[AdmitCard] = []
        errors: List[Dict[str, Any]] = []

        for index, row in enumerate(students):
            try:
                candidate = CandidateDetails.model_validate(row)
                cards.append(await self.create_card(db, user, candidate, exam))
            except PydanticValidationError as e:
                errors.append({"index": index, "student_name": row.get("student_name"), "error": _first_error(e)})
            except ShikkhaError as e:
                errors.append({"index": index, "student_name": row.get("student_name"), "error": e.message})

        logger.info(f"[AdmitCards] Batch for {exam.exam_name}: {len(cards)} created, {len(errors)} failed")
        return {
            "admit_cards": cards,
            "errors": errors,
            "summary": {"total": len(students), "successful": len(cards), "failed": len(errors)},
        }

    @staticmethod
    async def get_card(db: AsyncSession, school_id: str, card_id: str) -> AdmitCard:
        result = await db.execute(
            select(AdmitCard).where(AdmitCard.id == card_id, AdmitCard.school_id == school_id)
        )
        card = result.scalar_one_or_none()
        if not card:
            raise ResourceNotFoundError("Admit card", card_id)
        return card

    def update_status(self, db: AsyncSession, card: AdmitCard, status: str, user: Optional[User] = None) -> AdmitCard:
        if status not in VALID_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(sorted(VALID_STATUSES))}",
                field="status",
            )
        previous = card.status
        card.status = status
        self.add_history(db, card, "status_changed", user, {"from": previous, "to": status})
        return card

    def mark_downloaded(self, db: AsyncSession, card: AdmitCard, user: Optional[User] = None) -> None:
        """Downloading a freshly generated card moves it to 'downloaded'"""
        details = {"previous_status": card.status}
        if card.status == AdmitCardStatus.GENERATED.value:
            card.status = AdmitCardStatus.DOWNLOADED.value
        self.add_history(db, card, "downloaded", user, details)

    @staticmethod
    def is_valid(card: AdmitCard, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return card.valid_until is None or card.valid_until >= today


# Singleton instance
admit_card_service = AdmitCardService()
