"""Builders for scheduler inputs used across the engine tests."""

from school_timetable.services.scheduler_types import (
    AvailabilitySlot, SchedulerConstraints, Subject, TeacherAssignment, TimeSlot
)

PERIODS = (
    ("08:00", "09:00"),
    ("09:00", "10:00"),
    ("10:00", "11:00"),
    ("11:00", "12:00"),
    ("13:00", "14:00"),
    ("14:00", "15:00"),
)
WEEKDAYS = (1, 2, 3, 4, 5)


def week_slots(days=WEEKDAYS, periods=PERIODS, with_break=True):
    slots = []
    for day in days:
        for index, (start, end) in enumerate(periods, start=1):
            slots.append(TimeSlot(f"d{day}p{index}", day, start, end))
        if with_break:
            slots.append(TimeSlot(f"d{day}lunch", day, "12:00", "13:00", is_break=True))
    return tuple(slots)


def availability(teacher_ids, days=WEEKDAYS, start="08:00", end="17:00"):
    return tuple(
        AvailabilitySlot(teacher_id, day, start, end)
        for teacher_id in teacher_ids
        for day in days
    )


def assign(teacher_id, subject):
    return TeacherAssignment(teacher_id, f"Teacher {teacher_id}", subject.id, subject.name)


def make_constraints(subjects, assignments, teacher_availability=None, time_slots=None, **kwargs):
    if teacher_availability is None:
        teacher_availability = availability(sorted({a.teacher_id for a in assignments}))
    if time_slots is None:
        time_slots = week_slots()
    return SchedulerConstraints(
        class_id=kwargs.pop("class_id", "c1"),
        subjects=tuple(subjects),
        teacher_assignments=tuple(assignments),
        teacher_availability=tuple(teacher_availability),
        time_slots=tuple(time_slots),
        **kwargs
    )


MATH = Subject("math", "Maths", 5)
ENGLISH = Subject("eng", "English", 4)
SCIENCE = Subject("sci", "Science", 3)
ART = Subject("art", "Art", 1)


def mixed_school_constraints(**kwargs):
    """Four subjects, three teachers, one of them only free on weekday mornings early in the week."""
    assignments = [
        assign("t1", MATH), assign("t2", MATH),
        assign("t2", ENGLISH), assign("t3", ENGLISH),
        assign("t1", SCIENCE),
        assign("t3", ART),
    ]
    teacher_availability = availability(["t1", "t2"]) + availability(["t3"], days=(1, 2, 3), end="12:00")
    return make_constraints(
        [MATH, ENGLISH, SCIENCE, ART], assignments, teacher_availability=teacher_availability, **kwargs
    )
