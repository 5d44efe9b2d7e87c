"""
Constraint validators for the timetable scheduler.
Answers "can this teacher take this slot?" for the auto-scheduler, audits
finished timetables for double bookings and availability violations, and
checks hand-placed entries against what is already stored.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Query, Session

from school_timetable.models.models import Timetable, TimeSlot as TimeSlotRow
from school_timetable.services.scheduler_types import (
    AvailabilitySlot, Conflict, ConflictType, TimeSlot, TimetableEntry
)


DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def get_day_name(day_of_week: int) -> str:
    """Day name for a Monday-first, 1-based day number."""
    if 1 <= day_of_week <= len(DAY_NAMES):
        return DAY_NAMES[day_of_week - 1]
    return "Unknown"


class TimetableValidator:

    def __init__(self, time_slots: Iterable[TimeSlot], availability: Iterable[AvailabilitySlot]):
        self.slots_by_id: Dict[str, TimeSlot] = {slot.id: slot for slot in time_slots}
        self.availability_by_teacher: Dict[str, List[AvailabilitySlot]] = defaultdict(list)
        for window in availability:
            self.availability_by_teacher[window.teacher_id].append(window)

    def is_within_availability(self, teacher_id: str, slot: TimeSlot) -> bool:
        return any(window.covers(slot) for window in self.availability_by_teacher.get(teacher_id, ()))

    def is_teacher_available_for_slot(
        self,
        teacher_id: str,
        slot: TimeSlot,
        teacher_schedule: Dict[str, Set[str]],
    ) -> bool:
        if slot.id in teacher_schedule.get(teacher_id, ()):
            return False
        return self.is_within_availability(teacher_id, slot)

    def validate(self, entries: Iterable[TimetableEntry]) -> List[Conflict]:
        """Report double bookings and placements outside a teacher's windows."""
        conflicts: List[Conflict] = []
        seen: Dict[str, Set[str]] = defaultdict(set)

        for entry in entries:
            slot = self.slots_by_id.get(entry.time_slot_id)
            where = (
                f"{get_day_name(slot.day_of_week)} {slot.start_time}-{slot.end_time}"
                if slot else f"slot {entry.time_slot_id}"
            )

            if entry.time_slot_id in seen[entry.teacher_id]:
                conflicts.append(Conflict(
                    type=ConflictType.TEACHER_DOUBLE_BOOKED,
                    message=f"Teacher {entry.teacher_id} is booked twice on {where}",
                    subject_id=entry.subject_id,
                    time_slot_id=entry.time_slot_id,
                    teacher_id=entry.teacher_id,
                ))
            seen[entry.teacher_id].add(entry.time_slot_id)

            if slot is None or slot.is_break or not self.is_within_availability(entry.teacher_id, slot):
                conflicts.append(Conflict(
                    type=ConflictType.TEACHER_UNAVAILABLE,
                    message=f"Teacher {entry.teacher_id} is not available on {where}",
                    subject_id=entry.subject_id,
                    time_slot_id=entry.time_slot_id,
                    teacher_id=entry.teacher_id,
                ))

        return conflicts


class EntryEditValidator:
    """
    Checks a hand-placed entry against stored rows of the same status, so a
    draft may sit in a slot the active timetable already uses.
    """

    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _entries(self, status: str, exclude_entry_id: Optional[str] = None) -> Query:
        query = self.db.query(Timetable).filter(
            Timetable.school_id == self.school_id,
            Timetable.status == status,
        )
        if exclude_entry_id is not None:
            query = query.filter(Timetable.id != exclude_entry_id)
        return query

    def is_class_slot_free(self, class_id, time_slot_id, status, exclude_entry_id=None) -> bool:
        return self._entries(status, exclude_entry_id).filter(
            Timetable.class_id == class_id,
            Timetable.time_slot_id == time_slot_id,
        ).first() is None

    def is_teacher_free(self, teacher_id, time_slot_id, status, exclude_entry_id=None) -> bool:
        return self._entries(status, exclude_entry_id).filter(
            Timetable.teacher_id == teacher_id,
            Timetable.time_slot_id == time_slot_id,
        ).first() is None

    def can_place(
        self,
        class_id: str,
        teacher_id: Optional[str],
        time_slot: TimeSlotRow,
        status: str,
        exclude_entry_id: Optional[str] = None,
    ) -> Tuple[bool, Optional[str]]:
        if time_slot.is_break:
            return False, "Cannot schedule teaching periods during break times"
        if not self.is_class_slot_free(class_id, time_slot.id, status, exclude_entry_id):
            return False, "Time slot already scheduled for this class"
        if teacher_id and not self.is_teacher_free(teacher_id, time_slot.id, status, exclude_entry_id):
            return False, "Teacher is already scheduled at this time slot"
        return True, None
