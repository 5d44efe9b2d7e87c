"""
Seed data script to populate the database with a sample school.
Run this before calling the auto-generate endpoint (or test_api.py).
"""

from school_timetable.models.database import SessionLocal, init_db
from school_timetable.models.models import (
    School, SchoolClass, Subject, Teacher, TeacherAvailability, TeacherClassAssignment, TimeSlot
)

DEMO_SCHOOL_ID = "demo-school"
DEMO_CLASS_ID = "demo-grade-5a"

PERIODS = [
    ("P1", "08:00", "09:00", False),
    ("P2", "09:00", "10:00", False),
    ("P3", "10:00", "11:00", False),
    ("P4", "11:00", "12:00", False),
    ("Lunch", "12:00", "13:00", True),
    ("P5", "13:00", "14:00", False),
    ("P6", "14:00", "15:00", False),
]


def seed_database():
    """Populate database with one school, one class and its teachers."""

    # Initialize tables
    init_db()

    db = SessionLocal()

    try:
        # Check if data already exists
        if db.query(School).filter(School.id == DEMO_SCHOOL_ID).count() > 0:
            print("Database already seeded. Skipping...")
            return

        db.add(School(id=DEMO_SCHOOL_ID, name="Riverside Primary School", school_code="RPS"))
        db.add(SchoolClass(id=DEMO_CLASS_ID, school_id=DEMO_SCHOOL_ID, name="Grade 5A", academic_year="2025-2026"))
        db.flush()

        # Subjects: (code, name, weekly hours)
        subjects_data = [
            ("MATH", "Mathematics", 5),
            ("FR", "French", 4),
            ("EN", "English", 3),
            ("SCI", "Science", 3),
            ("HIST", "History", 2),
            ("ART", "Art", 1),
            ("PE", "Physical Education", 2),
        ]
        subjects = {}
        for code, name, hours in subjects_data:
            subject = Subject(school_id=DEMO_SCHOOL_ID, code=code, name=name, weekly_hours=hours)
            db.add(subject)
            subjects[code] = subject

        # Teachers: (name, subjects taught to Grade 5A, availability days, window)
        teachers_data = [
            ("Marie Dubois", ["FR", "HIST"], [1, 2, 3, 4, 5], ("08:00", "15:00")),
            ("James Carter", ["MATH", "SCI"], [1, 2, 3, 4, 5], ("08:00", "15:00")),
            ("Aisha Bello", ["MATH", "EN"], [1, 2, 4], ("08:00", "12:00")),
            ("Tom Lindqvist", ["EN", "ART", "PE"], [2, 3, 5], ("09:00", "15:00")),
        ]
        teachers = []
        for name, codes, days, (start, end) in teachers_data:
            teacher = Teacher(school_id=DEMO_SCHOOL_ID, name=name)
            db.add(teacher)
            teachers.append((teacher, codes, days, start, end))

        db.flush()

        for teacher, codes, days, start, end in teachers:
            for code in codes:
                db.add(TeacherClassAssignment(
                    school_id=DEMO_SCHOOL_ID,
                    teacher_id=teacher.id,
                    class_id=DEMO_CLASS_ID,
                    subject_id=subjects[code].id,
                ))
            for day in days:
                db.add(TeacherAvailability(
                    school_id=DEMO_SCHOOL_ID,
                    teacher_id=teacher.id,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                ))

        # Weekly grid, Monday (1) to Friday (5)
        for day in range(1, 6):
            for name, start, end, is_break in PERIODS:
                db.add(TimeSlot(
                    school_id=DEMO_SCHOOL_ID,
                    day_of_week=day,
                    start_time=start,
                    end_time=end,
                    name=name,
                    is_break=is_break,
                ))

        # Commit all changes
        db.commit()
        print("Database seeded successfully!")
        print(f"  - class id: {DEMO_CLASS_ID}")
        print(f"  - {db.query(Subject).filter(Subject.school_id == DEMO_SCHOOL_ID).count()} subjects created")
        print(f"  - {db.query(Teacher).filter(Teacher.school_id == DEMO_SCHOOL_ID).count()} teachers created")
        print(f"  - {db.query(TimeSlot).filter(TimeSlot.school_id == DEMO_SCHOOL_ID).count()} time slots created")

    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
