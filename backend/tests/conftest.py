"""
Shikkha Hub - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
TEST_DIR = tempfile.mkdtemp(prefix='shikkhahub-tests-')
TEST_DATABASE_URL = f'sqlite+aiosqlite:///{os.path.join(TEST_DIR, "test.db")}'

os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = TEST_DATABASE_URL
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['STORAGE_MODE'] = 'local'
os.environ['STORAGE_LOCAL_PATH'] = os.path.join(TEST_DIR, 'storage')
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['SMTP_USER'] = ''
os.environ['SENDGRID_API_KEY'] = ''

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, create_access_token, build_token_payload
from app.models.school import School
from app.models.student import Student
from app.models.teacher import Teacher
from app.models.user import User, UserRole

fake = Faker()

TEST_PASSWORD = 'testpassword123'

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


def make_email() -> str:
    return f'{fake.user_name()}{fake.random_int(1000, 9999)}@school.edu.bd'


def auth_headers_for(user: User) -> dict:
    token = create_access_token(build_token_payload(user))
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(db: AsyncSession, role: UserRole, school: School = None, **kwargs) -> User:
    user = User(
        email=kwargs.pop('email', None) or make_email(),
        hashed_password=get_password_hash(kwargs.pop('password', TEST_PASSWORD)),
        full_name=kwargs.pop('full_name', None) or fake.name(),
        role=role,
        school_id=school.id if school else None,
        is_active=kwargs.pop('is_active', True),
        **kwargs
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def school(db_session: AsyncSession) -> School:
    """A school with no credit balance yet (opened with the default on first use)"""
    school = School(
        name='Dhaka Model High School',
        name_bn='ঢাকা মডেল উচ্চ বিদ্যালয়',
        code=f'SCH-{fake.random_int(100000, 999999)}',
        district='Dhaka',
    )
    db_session.add(school)
    await db_session.commit()
    await db_session.refresh(school)
    return school


@pytest.fixture
async def other_school(db_session: AsyncSession) -> School:
    school = School(name='Chittagong Collegiate School', code=f'SCH-{fake.random_int(100000, 999999)}')
    db_session.add(school)
    await db_session.commit()
    await db_session.refresh(school)
    return school


@pytest.fixture
async def admin_user(db_session: AsyncSession, school: School) -> User:
    return await create_user(db_session, UserRole.ADMIN, school)


@pytest.fixture
async def teacher_user(db_session: AsyncSession, school: School) -> User:
    return await create_user(db_session, UserRole.TEACHER, school)


@pytest.fixture
async def student_user(db_session: AsyncSession, school: School) -> User:
    return await create_user(db_session, UserRole.STUDENT, school)


@pytest.fixture
async def parent_user(db_session: AsyncSession, school: School) -> User:
    return await create_user(db_session, UserRole.PARENT, school)


@pytest.fixture
async def super_admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, UserRole.SUPER_ADMIN)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
def teacher_headers(teacher_user: User) -> dict:
    return auth_headers_for(teacher_user)


@pytest.fixture
def student_headers(student_user: User) -> dict:
    return auth_headers_for(student_user)


@pytest.fixture
def parent_headers(parent_user: User) -> dict:
    return auth_headers_for(parent_user)


@pytest.fixture
def super_admin_headers(super_admin_user: User) -> dict:
    return auth_headers_for(super_admin_user)


async def create_student(db: AsyncSession, school: School, **kwargs) -> Student:
    values = {
        'student_id': f'2024-{fake.random_int(1000, 9999)}',
        'name': fake.name(),
        'class_name': '6',
        'section': 'A',
        'roll_number': str(fake.random_int(1, 60)),
    }
    values.update(kwargs)
    student = Student(school_id=school.id, **values)
    db.add(student)
    await db.commit()
    await db.refresh(student)
    return student


@pytest.fixture
async def student(db_session: AsyncSession, school: School, student_user: User, parent_user: User) -> Student:
    """Class 6-A student linked to the student and parent accounts"""
    return await create_student(
        db_session,
        school,
        name='Nusrat Jahan',
        name_bn='নুসরাত জাহান',
        user_id=student_user.id,
        parent_id=parent_user.id,
    )


@pytest.fixture
async def teacher(db_session: AsyncSession, school: School, teacher_user: User) -> Teacher:
    """Teacher record assigned to class 6-A"""
    teacher = Teacher(
        school_id=school.id,
        teacher_id='T-001',
        name=teacher_user.full_name,
        subject='Mathematics',
        classes=[{'class_name': '6', 'section': 'A', 'subject': 'Mathematics'}],
        user_id=teacher_user.id,
    )
    db_session.add(teacher)
    await db_session.commit()
    await db_session.refresh(teacher)
    return teacher
