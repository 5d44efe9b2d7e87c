"""
SQLAlchemy models for the school timetable system.
Every row carries its school_id; ids are opaque strings.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Index
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class School(Base):
    """A tenant; all other rows belong to exactly one school."""
    __tablename__ = "schools"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    school_code = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    classes = relationship("SchoolClass", back_populates="school")


class SchoolClass(Base):
    """A class (group of students) that gets one weekly timetable."""
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    name = Column(String(100), nullable=False)
    academic_year = Column(String(20), nullable=False)
    capacity = Column(Integer, default=30)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    school = relationship("School", back_populates="classes")
    assignments = relationship("TeacherClassAssignment", back_populates="school_class")


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=True)
    weekly_hours = Column(Integer, default=0)  # periods per week for each class taking it
    created_at = Column(DateTime, default=datetime.utcnow)


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    availability = relationship("TeacherAvailability", back_populates="teacher")


class TeacherClassAssignment(Base):
    """Teacher X teaches subject Y to class Z."""
    __tablename__ = "teacher_classes"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=False)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    teacher = relationship("Teacher")
    subject = relationship("Subject")
    school_class = relationship("SchoolClass", back_populates="assignments")

    __table_args__ = (Index("ix_teacher_classes_class", "class_id"),)


class TeacherAvailability(Base):
    """A weekly window in which the teacher can be scheduled."""
    __tablename__ = "teacher_availability"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 1 = Monday ... 7 = Sunday
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    is_recurring = Column(Boolean, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    teacher = relationship("Teacher", back_populates="availability")

    __table_args__ = (Index("ix_teacher_availability_teacher_day", "teacher_id", "day_of_week"),)


class TimeSlot(Base):
    """One period of the school's weekly grid."""
    __tablename__ = "time_slots"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    name = Column(String(50), nullable=True)
    is_break = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_time_slots_school_day", "school_id", "day_of_week"),)


class Timetable(Base):
    """A placed lesson: class + subject + teacher in one time slot."""
    __tablename__ = "timetables"

    id = Column(String(36), primary_key=True, default=_new_id)
    school_id = Column(String(36), ForeignKey("schools.id"), nullable=False)
    class_id = Column(String(36), ForeignKey("classes.id"), nullable=False)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=True)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=True)
    time_slot_id = Column(String(36), ForeignKey("time_slots.id"), nullable=False)
    academic_year = Column(String(20), nullable=False)
    status = Column(String(10), default="draft")  # draft | active

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    subject = relationship("Subject")
    teacher = relationship("Teacher")
    time_slot = relationship("TimeSlot")

    __table_args__ = (
        Index("ix_timetables_class_status", "class_id", "status"),
        Index("ix_timetables_teacher_slot", "teacher_id", "time_slot_id"),
    )
