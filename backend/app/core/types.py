"""Custom SQLAlchemy types and identifier helpers shared by the models"""
from sqlalchemy import TypeDecorator, String
from datetime import datetime
import secrets
import string
import uuid

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_uuid() -> str:
    """Generate a UUID string"""
    return str(uuid.uuid4())


def generate_code(length: int = 12, alphabet: str = CODE_ALPHABET) -> str:
    """Random upper-case alphanumeric code (verification codes, card suffixes)"""
    return "".join(secrets.choice(alphabet) for _ in range(length))


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns"""
    return datetime.utcnow()


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value
