import os

# Must be set before the app's database module builds its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from school_timetable.main import app
from school_timetable.models.database import get_db
from school_timetable.models.models import (
    Base, School, SchoolClass, Subject, Teacher, TeacherAvailability, TeacherClassAssignment, TimeSlot
)

PERIODS = [
    ("08:00", "09:00"),
    ("09:00", "10:00"),
    ("10:00", "11:00"),
    ("11:00", "12:00"),
    ("13:00", "14:00"),
    ("14:00", "15:00"),
]
WEEKDAYS = (1, 2, 3, 4, 5)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_school(db_session):
    """
    One school, class c1 with Maths (4 h, teachers t1 and t2) and English
    (2 h, teacher t2); both teachers free Mon-Fri 08:00-17:00; six periods a
    day plus a lunch break.
    """
    db_session.add(School(id="s1", name="Hillside Primary", school_code="HSP"))
    db_session.add(SchoolClass(id="c1", school_id="s1", name="Grade 5A", academic_year="2025-2026"))
    db_session.add_all([
        Subject(id="math", school_id="s1", name="Maths", weekly_hours=4),
        Subject(id="eng", school_id="s1", name="English", weekly_hours=2),
        Teacher(id="t1", school_id="s1", name="Ada Obi"),
        Teacher(id="t2", school_id="s1", name="Sam Park"),
    ])
    db_session.add_all([
        TeacherClassAssignment(id="a1", school_id="s1", teacher_id="t1", class_id="c1", subject_id="math"),
        TeacherClassAssignment(id="a2", school_id="s1", teacher_id="t2", class_id="c1", subject_id="math"),
        TeacherClassAssignment(id="a3", school_id="s1", teacher_id="t2", class_id="c1", subject_id="eng"),
    ])
    for day in WEEKDAYS:
        for teacher_id in ("t1", "t2"):
            db_session.add(TeacherAvailability(
                school_id="s1", teacher_id=teacher_id, day_of_week=day, start_time="08:00", end_time="17:00"
            ))
        for index, (start, end) in enumerate(PERIODS, start=1):
            db_session.add(TimeSlot(
                id=f"d{day}p{index}", school_id="s1", day_of_week=day, start_time=start, end_time=end
            ))
        db_session.add(TimeSlot(
            id=f"d{day}lunch", school_id="s1", day_of_week=day, start_time="12:00", end_time="13:00",
            is_break=True,
        ))
    db_session.commit()
    return {"school_id": "s1", "class_id": "c1"}
