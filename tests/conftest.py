import random
from datetime import datetime, date

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wordflow.main import app
from wordflow.models.base import Base
from wordflow.models.user import User
from wordflow.models.notebook import Notebook
from wordflow.models.phrase import Phrase
from wordflow.models.enums import LearnerLevel, CatalogStatus, NotebookKind
from wordflow.utils.database import get_db, create_tables

# 测试数据库（内存）
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 圣保罗时间 2026-03-10 12:00
NOW = datetime(2026, 3, 10, 15, 0, tzinfo=pytz.utc)
TODAY = date(2026, 3, 10)


@pytest.fixture(scope="function")
def db_session():
    """创建测试数据库会话"""
    create_tables(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def notebook(db_session):
    notebook = Notebook(name="Essencial", kind=NotebookKind.DEFAULT, total_phrases=0)
    db_session.add(notebook)
    db_session.commit()
    return notebook


@pytest.fixture
def make_phrases(db_session, notebook):
    """批量创建句子"""
    def _make(count, level=LearnerLevel.BASIC, status=CatalogStatus.ACTIVE, notebook_id=None):
        phrases = []
        for i in range(count):
            phrase = Phrase(
                text=f"{level.value} phrase {i + 1}",
                translation=f"frase {level.value} {i + 1}",
                explanation="explicação",
                level=level,
                status=status,
                notebook_id=notebook_id or notebook.id,
            )
            db_session.add(phrase)
            phrases.append(phrase)
        db_session.commit()
        return phrases
    return _make


@pytest.fixture
def make_user(db_session):
    """创建学员"""
    def _make(email="learner@example.com", phrases_per_day=5, level=LearnerLevel.BASIC, **extra):
        user = User(
            email=email,
            name="Learner",
            level=level,
            phrases_per_day=phrases_per_day,
            has_active_session=False,
            total_seen=0,
            total_correct=0,
            consecutive_days=0,
            **extra
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make
