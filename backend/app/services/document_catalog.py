"""
Document catalog - every document type a school can generate and what it costs
================================================================================

Keys are kebab-case and are what clients send as ``document_type``.
``credits`` is the default cost; a template's ``required_credits`` overrides it.
"""

from typing import Dict, Any, List, Optional
from datetime import datetime

from app.core.types import generate_code
from app.core.exceptions import ValidationError


CATEGORIES: Dict[str, Dict[str, str]] = {
    "id-cards": {"name": "ID Cards", "name_bn": "পরিচয়পত্র"},
    "academic": {"name": "Academic", "name_bn": "একাডেমিক"},
    "certificates": {"name": "Certificates", "name_bn": "সনদপত্র"},
    "letters": {"name": "Letters", "name_bn": "পত্র"},
    "finance": {"name": "Finance", "name_bn": "আর্থিক"},
    "official": {"name": "Official", "name_bn": "দাপ্তরিক"},
}


def _entry(name: str, name_bn: str, category: str, credits: int) -> Dict[str, Any]:
    return {"name": name, "name_bn": name_bn, "category": category, "credits": credits}


DOCUMENT_TYPES: Dict[str, Dict[str, Any]] = {
    "student-id-card": _entry("Student ID Card", "শিক্ষার্থী আইডি কার্ড", "id-cards", 2),
    "admit-card": _entry("Admit Card", "এডমিট কার্ড", "academic", 3),
    "fee-receipt": _entry("Fee Receipt", "ফি রসিদ", "finance", 1),
    "marksheet": _entry("Marksheet", "মার্কশীট", "academic", 4),
    "testimonial": _entry("Testimonial", "প্রশংসাপত্র", "certificates", 5),
    "certificate": _entry("Certificate", "সনদপত্র", "certificates", 4),
    "transfer-certificate": _entry("Transfer Certificate", "স্থানান্তর সনদপত্র", "certificates", 6),
    "character-certificate": _entry("Character Certificate", "চারিত্রিক সনদপত্র", "certificates", 4),
    "study-certificate": _entry("Study Certificate", "অধ্যয়ন সনদপত্র", "certificates", 3),
    "salary-certificate": _entry("Salary Certificate", "বেতন সনদপত্র", "finance", 3),
    "experience-certificate": _entry("Experience Certificate", "অভিজ্ঞতা সনদপত্র", "certificates", 4),
    "employment-letter": _entry("Employment Letter", "চাকরির পত্র", "letters", 3),
    "recommendation-letter": _entry("Recommendation Letter", "সুপারিশপত্র", "letters", 4),
    "leave-application": _entry("Leave Application", "ছুটির আবেদন", "letters", 2),
    "joining-letter": _entry("Joining Letter", "যোগদানপত্র", "letters", 3),
    "resignation-letter": _entry("Resignation Letter", "পদত্যাগপত্র", "letters", 3),
    "appointment-letter": _entry("Appointment Letter", "নিয়োগপত্র", "letters", 4),
    "promotion-letter": _entry("Promotion Letter", "পদোন্নতিপত্র", "letters", 4),
    "increment-letter": _entry("Increment Letter", "বেতন বৃদ্ধির পত্র", "letters", 3),
    "warning-letter": _entry("Warning Letter", "সতর্কীকরণ পত্র", "letters", 2),
    "termination-letter": _entry("Termination Letter", "অব্যাহতিপত্র", "letters", 4),
    "noc": _entry("No Objection Certificate", "অনাপত্তি সনদপত্র", "official", 4),
    "bonafide-certificate": _entry("Bonafide Certificate", "প্রত্যয়নপত্র", "certificates", 3),
    "income-certificate": _entry("Income Certificate", "আয় সনদপত্র", "official", 3),
    "domicile-certificate": _entry("Domicile Certificate", "স্থায়ী বাসিন্দা সনদপত্র", "official", 4),
    "caste-certificate": _entry("Caste Certificate", "বর্ণ সনদপত্র", "official", 3),
    "birth-certificate": _entry("Birth Certificate", "জন্ম সনদপত্র", "official", 4),
    "death-certificate": _entry("Death Certificate", "মৃত্যু সনদপত্র", "official", 4),
    "marriage-certificate": _entry("Marriage Certificate", "বিবাহ সনদপত্র", "official", 5),
    "divorce-certificate": _entry("Divorce Certificate", "তালাক সনদপত্র", "official", 5),
    "passport-application": _entry("Passport Application", "পাসপোর্ট আবেদন", "official", 6),
    "visa-application": _entry("Visa Application", "ভিসা আবেদন", "official", 7),
    "scholarship-form": _entry("Scholarship Form", "বৃত্তি ফর্ম", "academic", 4),
    "admission-form": _entry("Admission Form", "ভর্তি ফর্ম", "academic", 5),
    "exam-form": _entry("Exam Form", "পরীক্ষার ফর্ম", "academic", 3),
    "result-sheet": _entry("Result Sheet", "ফলাফল শিট", "academic", 4),
    "grade-sheet": _entry("Grade Sheet", "গ্রেড শিট", "academic", 4),
    "transcript": _entry("Official Transcript", "অফিসিয়াল ট্রান্সক্রিপ্ট", "academic", 6),
    "hall-ticket": _entry("Hall Ticket", "হল টিকেট", "academic", 2),
    "library-card": _entry("Library Card", "লাইব্রেরি কার্ড", "id-cards", 1),
    "bus-pass": _entry("Bus Pass", "বাস পাস", "id-cards", 2),
    "health-certificate": _entry("Health Certificate", "স্বাস্থ্য সনদপত্র", "certificates", 3),
    "medical-certificate": _entry("Medical Certificate", "মেডিকেল সনদপত্র", "certificates", 4),
    "fitness-certificate": _entry("Fitness Certificate", "ফিটনেস সনদপত্র", "certificates", 3),
    "sports-certificate": _entry("Sports Certificate", "ক্রীড়া সনদপত্র", "certificates", 4),
    "participation-certificate": _entry("Participation Certificate", "অংশগ্রহণ সনদপত্র", "certificates", 3),
    "achievement-certificate": _entry("Achievement Certificate", "কৃতিত্ব সনদপত্র", "certificates", 5),
    "merit-certificate": _entry("Merit Certificate", "মেধা সনদপত্র", "certificates", 5),
    "excellence-award": _entry("Excellence Award", "শ্রেষ্ঠত্ব পুরস্কার", "certificates", 6),
    "completion-certificate": _entry("Course Completion Certificate", "কোর্স সমাপ্তি সনদপত্র", "certificates", 5),
    "training-certificate": _entry("Training Certificate", "প্রশিক্ষণ সনদপত্র", "certificates", 4),
    "workshop-certificate": _entry("Workshop Certificate", "কর্মশালা সনদপত্র", "certificates", 4),
    "seminar-certificate": _entry("Seminar Certificate", "সেমিনার সনদপত্র", "certificates", 4),
    "conference-certificate": _entry("Conference Certificate", "সম্মেলন সনদপত্র", "certificates", 5),
    "internship-certificate": _entry("Internship Certificate", "ইন্টার্নশিপ সনদপত্র", "certificates", 5),
    "project-certificate": _entry("Project Certificate", "প্রকল্প সনদপত্র", "certificates", 4),
}

# Templates with more generations than this are flagged as popular
POPULAR_TEMPLATE_THRESHOLD = 50


def is_known_type(document_type: str) -> bool:
    return document_type in DOCUMENT_TYPES


def get_document_type(document_type: str) -> Dict[str, Any]:
    """Catalog entry for a type, or ValidationError for an unknown key"""
    entry = DOCUMENT_TYPES.get(document_type)
    if entry is None:
        raise ValidationError(f"Unknown document type: {document_type}", field="document_type")
    return entry


def get_cost(document_type: str) -> int:
    return get_document_type(document_type)["credits"]


def list_document_types(category: Optional[str] = None) -> List[Dict[str, Any]]:
    """Catalog as a list, optionally narrowed to one category"""
    items = []
    for key, entry in DOCUMENT_TYPES.items():
        if category and entry["category"] != category:
            continue
        items.append({
            "type": key,
            **entry,
            "category_bn": CATEGORIES[entry["category"]]["name_bn"],
        })
    return items


def usage_description_bn(document_type: str, credits: int) -> str:
    """Bangla activity line, e.g. 'এডমিট কার্ড - 3 ক্রেডিট ব্যবহৃত'"""
    entry = DOCUMENT_TYPES.get(document_type)
    name_bn = entry["name_bn"] if entry else document_type
    return f"{name_bn} - {credits} ক্রেডিট ব্যবহৃত"


def generate_verification_code(length: int = 12) -> str:
    """Upper-case alphanumeric code printed on documents and encoded in QR"""
    return generate_code(length)


def generate_card_number(year: Optional[int] = None) -> str:
    """Admit card number: AC-{year}-{8 upper alnum}"""
    year = year or datetime.utcnow().year
    return f"AC-{year}-{generate_code(8)}"
