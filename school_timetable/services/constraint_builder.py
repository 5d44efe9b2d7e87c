"""
Constraint Builder Module
Loads everything the auto-scheduler needs for one class from the database and
checks that the class is ready to be scheduled.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from school_timetable import config
from school_timetable.models.models import (
    SchoolClass, Subject, Teacher, TeacherAvailability, TeacherClassAssignment, TimeSlot, Timetable
)
from school_timetable.services import scheduler_types as st
from school_timetable.services.errors import ClassNotFoundError, PrerequisiteError

logger = logging.getLogger(__name__)


def gather_constraints(
    db: Session,
    class_id: str,
    school_id: Optional[str] = None,
    strategy: st.SchedulerStrategy = st.SchedulerStrategy.BALANCED,
    preserve_existing: bool = False,
) -> st.SchedulerConstraints:
    """
    Build the scheduler input for ``class_id``.

    Subjects are the ones the class has teachers assigned for, so a subject
    nobody teaches to this class never reaches the scheduler.
    """
    query = db.query(SchoolClass).filter(SchoolClass.id == class_id)
    if school_id:
        query = query.filter(SchoolClass.school_id == school_id)
    school_class = query.first()
    if school_class is None:
        raise ClassNotFoundError(class_id)
    school_id = school_class.school_id

    rows = (
        db.query(TeacherClassAssignment, Teacher, Subject)
        .join(Teacher, TeacherClassAssignment.teacher_id == Teacher.id)
        .join(Subject, TeacherClassAssignment.subject_id == Subject.id)
        .filter(
            TeacherClassAssignment.class_id == class_id,
            TeacherClassAssignment.school_id == school_id,
        )
        .order_by(TeacherClassAssignment.created_at, TeacherClassAssignment.id)
        .all()
    )

    assignments: List[st.TeacherAssignment] = []
    subjects: Dict[str, st.Subject] = {}
    teacher_ids: List[str] = []
    for _assignment, teacher, subject in rows:
        assignments.append(st.TeacherAssignment(
            teacher_id=teacher.id,
            teacher_name=teacher.name,
            subject_id=subject.id,
            subject_name=subject.name,
        ))
        subjects.setdefault(subject.id, st.Subject(subject.id, subject.name, int(subject.weekly_hours or 0)))
        if teacher.id not in teacher_ids:
            teacher_ids.append(teacher.id)

    availability = []
    if teacher_ids:
        availability = [
            st.AvailabilitySlot(
                teacher_id=a.teacher_id,
                day_of_week=a.day_of_week,
                start_time=a.start_time,
                end_time=a.end_time,
                id=a.id,
            )
            for a in db.query(TeacherAvailability).filter(
                TeacherAvailability.teacher_id.in_(teacher_ids),
                TeacherAvailability.school_id == school_id,
            ).all()
        ]

    time_slots = [
        st.TimeSlot(
            id=s.id,
            day_of_week=s.day_of_week,
            start_time=s.start_time,
            end_time=s.end_time,
            is_break=bool(s.is_break),
        )
        for s in db.query(TimeSlot).filter(TimeSlot.school_id == school_id)
        .order_by(TimeSlot.day_of_week, TimeSlot.start_time).all()
    ]

    academic_year = school_class.academic_year or config.DEFAULT_ACADEMIC_YEAR
    existing = _load_existing(db, class_id, school_id, academic_year) if preserve_existing else []

    logger.debug(
        f"Gathered class {class_id}: {len(subjects)} subjects, {len(assignments)} assignments, "
        f"{len(availability)} availability windows, {len(time_slots)} time slots, {len(existing)} existing"
    )

    return st.SchedulerConstraints(
        class_id=class_id,
        subjects=tuple(subjects.values()),
        teacher_assignments=tuple(assignments),
        teacher_availability=tuple(availability),
        time_slots=tuple(time_slots),
        existing_timetable=tuple(existing),
        preserve_existing=preserve_existing,
        strategy=st.SchedulerStrategy(strategy),
        academic_year=academic_year,
    )


def _load_existing(db: Session, class_id: str, school_id: str, academic_year: str) -> List[st.TimetableEntry]:
    """The class's draft for the year, or its active timetable when no draft exists yet."""
    rows_for_year = db.query(Timetable).filter(
        Timetable.class_id == class_id,
        Timetable.school_id == school_id,
        Timetable.academic_year == academic_year,
    )
    rows = (
        rows_for_year.filter(Timetable.status == st.EntryStatus.DRAFT.value)
        .order_by(Timetable.created_at, Timetable.id).all()
    )
    if not rows:
        rows = (
            rows_for_year.filter(Timetable.status == st.EntryStatus.ACTIVE.value)
            .order_by(Timetable.created_at, Timetable.id).all()
        )
    return [
        st.TimetableEntry(
            class_id=e.class_id,
            subject_id=e.subject_id,
            teacher_id=e.teacher_id,
            time_slot_id=e.time_slot_id,
            academic_year=e.academic_year,
            status=st.EntryStatus(e.status or "draft"),
            id=e.id,
        )
        for e in rows
    ]


def validate_prerequisites(constraints: st.SchedulerConstraints) -> None:
    """Raise PrerequisiteError naming the first thing missing before a run makes sense."""
    teacher_ids = {a.teacher_id for a in constraints.teacher_assignments}
    subjects = constraints.subjects
    missing = {
        "subjects": not subjects,
        "subjectsWithQuotas": not any(s.weekly_hours > 0 for s in subjects),
        "teachers": not teacher_ids,
        "teacherAssignments": not constraints.teacher_assignments,
        "teacherAvailability": not constraints.teacher_availability,
        "timeSlots": not any(not s.is_break for s in constraints.time_slots),
    }

    if missing["subjects"]:
        raise PrerequisiteError(
            "No subjects found for this class",
            [
                "Add subjects to your school",
                "Assign teachers to subjects for this class",
            ],
            missing,
        )

    if missing["subjectsWithQuotas"]:
        without = ", ".join(s.name for s in subjects if s.weekly_hours <= 0)
        plural = "" if len(subjects) == 1 else "s"
        raise PrerequisiteError(
            f"No subjects have weekly hour quotas set ({len(subjects)} subject{plural} found without quotas)",
            [
                "Edit each subject and set its weekly hours",
                "Example: Math = 5 hours/week, French = 4 hours/week",
                f"Subjects needing quotas: {without}",
            ],
            missing,
        )

    if missing["teachers"]:
        raise PrerequisiteError(
            "No teachers assigned to this class",
            ["Assign teachers to subjects for this class"],
            missing,
        )

    if missing["teacherAssignments"]:
        raise PrerequisiteError(
            "No teacher-subject assignments found for this class",
            [
                "For each teacher, assign them to subjects they teach",
                "Make sure to assign them to this specific class",
            ],
            missing,
        )

    if missing["teacherAvailability"]:
        count = len(teacher_ids)
        raise PrerequisiteError(
            "No teacher availability schedules set",
            [
                "Set availability schedules for all teachers",
                f"{count} teacher{'' if count == 1 else 's'} need{'s' if count == 1 else ''} availability set",
            ],
            missing,
        )

    if missing["timeSlots"]:
        raise PrerequisiteError(
            "No time slots defined",
            [
                "Create your school's daily schedule",
                "Example: 08:00-09:00, 09:00-10:00, etc.",
            ],
            missing,
        )
