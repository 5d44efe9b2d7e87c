"""
Value records consumed and produced by the auto-scheduler.

Attributes are snake_case; ``to_dict``/``from_dict`` translate to the camelCase
JSON shape the HTTP layer exchanges with the dashboard.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


DEFAULT_ACADEMIC_YEAR = "2025-2026"


class SchedulerStrategy(str, Enum):
    """Where in the day the scheduler prefers to put lessons."""
    BALANCED = "balanced"
    MORNING_HEAVY = "morning-heavy"
    AFTERNOON_HEAVY = "afternoon-heavy"


class ConflictType(str, Enum):
    TEACHER_DOUBLE_BOOKED = "teacher_double_booked"
    TEACHER_UNAVAILABLE = "teacher_unavailable"
    SUBJECT_QUOTA_EXCEEDED = "subject_quota_exceeded"
    NO_TEACHER_AVAILABLE = "no_teacher_available"


class EntryStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"


# ── Inputs ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    weekly_hours: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subject":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            weekly_hours=int(data.get("weeklyHours") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "weeklyHours": self.weekly_hours}


@dataclass(frozen=True)
class TeacherAssignment:
    """A teacher qualified for, and assigned to, one subject of the class."""
    teacher_id: str
    teacher_name: str
    subject_id: str
    subject_name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeacherAssignment":
        return cls(
            teacher_id=data["teacherId"],
            teacher_name=data.get("teacherName", ""),
            subject_id=data["subjectId"],
            subject_name=data.get("subjectName", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teacherId": self.teacher_id,
            "teacherName": self.teacher_name,
            "subjectId": self.subject_id,
            "subjectName": self.subject_name,
        }


@dataclass(frozen=True)
class AvailabilitySlot:
    """One contiguous window ("HH:MM" bounds) in which a teacher can teach."""
    teacher_id: str
    day_of_week: int
    start_time: str
    end_time: str
    id: Optional[str] = None

    def covers(self, slot: "TimeSlot") -> bool:
        return (
            self.day_of_week == slot.day_of_week
            and slot.start_time >= self.start_time
            and slot.end_time <= self.end_time
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvailabilitySlot":
        return cls(
            teacher_id=data["teacherId"],
            day_of_week=int(data["dayOfWeek"]),
            start_time=data["startTime"],
            end_time=data["endTime"],
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "teacherId": self.teacher_id,
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass(frozen=True)
class TimeSlot:
    id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_break: bool = False

    def is_followed_by(self, other: "TimeSlot") -> bool:
        """True when ``other`` starts exactly as this slot ends on the same day."""
        return self.day_of_week == other.day_of_week and self.end_time == other.start_time

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSlot":
        return cls(
            id=data["id"],
            day_of_week=int(data["dayOfWeek"]),
            start_time=data["startTime"],
            end_time=data["endTime"],
            is_break=bool(data.get("isBreak") or False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "isBreak": self.is_break,
        }


@dataclass(frozen=True)
class TimetableEntry:
    class_id: str
    subject_id: str
    teacher_id: str
    time_slot_id: str
    academic_year: str = DEFAULT_ACADEMIC_YEAR
    status: EntryStatus = EntryStatus.DRAFT
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimetableEntry":
        return cls(
            class_id=data["classId"],
            subject_id=data["subjectId"],
            teacher_id=data["teacherId"],
            time_slot_id=data["timeSlotId"],
            academic_year=data.get("academicYear") or DEFAULT_ACADEMIC_YEAR,
            status=EntryStatus(data.get("status") or EntryStatus.DRAFT.value),
            id=data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "classId": self.class_id,
            "subjectId": self.subject_id,
            "teacherId": self.teacher_id,
            "timeSlotId": self.time_slot_id,
            "academicYear": self.academic_year,
            "status": self.status.value,
        }
        if self.id is not None:
            data["id"] = self.id
        return data


@dataclass(frozen=True)
class SchedulerConstraints:
    """Everything the scheduler needs to plan one class's week."""
    class_id: str
    subjects: Tuple[Subject, ...]
    teacher_assignments: Tuple[TeacherAssignment, ...]
    teacher_availability: Tuple[AvailabilitySlot, ...]
    time_slots: Tuple[TimeSlot, ...]
    existing_timetable: Tuple[TimetableEntry, ...] = ()
    preserve_existing: bool = False
    strategy: SchedulerStrategy = SchedulerStrategy.BALANCED
    academic_year: str = DEFAULT_ACADEMIC_YEAR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerConstraints":
        return cls(
            class_id=data["classId"],
            subjects=tuple(Subject.from_dict(s) for s in data.get("subjects", [])),
            teacher_assignments=tuple(
                TeacherAssignment.from_dict(a) for a in data.get("teacherAssignments", [])
            ),
            teacher_availability=tuple(
                AvailabilitySlot.from_dict(a) for a in data.get("teacherAvailability", [])
            ),
            time_slots=tuple(TimeSlot.from_dict(s) for s in data.get("timeSlots", [])),
            existing_timetable=tuple(
                TimetableEntry.from_dict(e) for e in data.get("existingTimetable", [])
            ),
            preserve_existing=bool(data.get("preserveExisting", False)),
            strategy=SchedulerStrategy(data.get("strategy") or SchedulerStrategy.BALANCED.value),
            academic_year=data.get("academicYear") or DEFAULT_ACADEMIC_YEAR,
        )


# ── Outputs ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    message: str
    subject_id: str
    time_slot_id: Optional[str] = None
    teacher_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Conflict":
        return cls(
            type=ConflictType(data["type"]),
            message=data.get("message", ""),
            subject_id=data["subjectId"],
            time_slot_id=data.get("timeSlotId"),
            teacher_id=data.get("teacherId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type.value, "message": self.message, "subjectId": self.subject_id}
        if self.time_slot_id is not None:
            data["timeSlotId"] = self.time_slot_id
        if self.teacher_id is not None:
            data["teacherId"] = self.teacher_id
        return data


@dataclass(frozen=True)
class TeacherOption:
    teacher_id: str
    teacher_name: str
    reason: str = "available"  # available | preferred

    def to_dict(self) -> Dict[str, Any]:
        return {"teacherId": self.teacher_id, "teacherName": self.teacher_name, "reason": self.reason}


@dataclass(frozen=True)
class MultiTeacherOption:
    """A placed slot that more than one qualified teacher could have taken."""
    subject_id: str
    time_slot_id: str
    teachers: Tuple[TeacherOption, ...]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MultiTeacherOption":
        return cls(
            subject_id=data["subjectId"],
            time_slot_id=data["timeSlotId"],
            teachers=tuple(
                TeacherOption(t["teacherId"], t.get("teacherName", ""), t.get("reason", "available"))
                for t in data.get("teachers", [])
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subjectId": self.subject_id,
            "timeSlotId": self.time_slot_id,
            "teachers": [t.to_dict() for t in self.teachers],
        }


@dataclass
class SchedulerStatistics:
    total_slots_needed: int = 0
    slots_placed: int = 0
    slots_conflicted: int = 0
    subjects_placed: int = 0
    total_subjects: int = 0
    double_period_count: int = 0
    days_with_classes: int = 0
    distribution_quality: float = 0.0

    _FIELDS = (
        ("total_slots_needed", "totalSlotsNeeded"),
        ("slots_placed", "slotsPlaced"),
        ("slots_conflicted", "slotsConflicted"),
        ("subjects_placed", "subjectsPlaced"),
        ("total_subjects", "totalSubjects"),
        ("double_period_count", "doublePeriodCount"),
        ("days_with_classes", "daysWithClasses"),
        ("distribution_quality", "distributionQuality"),
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerStatistics":
        return cls(**{attr: data[key] for attr, key in cls._FIELDS if key in data})

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in self._FIELDS}


@dataclass(frozen=True)
class SubjectDistribution:
    subject_name: str
    total_hours: int
    by_day: Dict[int, int]
    unique_days: int
    meets_target: bool
    is_balanced: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectDistribution":
        return cls(
            subject_name=data.get("subjectName", ""),
            total_hours=int(data.get("totalHours", 0)),
            # JSON object keys arrive as strings
            by_day={int(day): int(count) for day, count in (data.get("byDay") or {}).items()},
            unique_days=int(data.get("uniqueDays", 0)),
            meets_target=bool(data.get("meetsTarget", False)),
            is_balanced=bool(data.get("isBalanced", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subjectName": self.subject_name,
            "totalHours": self.total_hours,
            "byDay": dict(self.by_day),
            "uniqueDays": self.unique_days,
            "meetsTarget": self.meets_target,
            "isBalanced": self.is_balanced,
        }


@dataclass
class SchedulerResult:
    success: bool = False
    timetable: List[TimetableEntry] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    multi_teacher_slots: List[MultiTeacherOption] = field(default_factory=list)
    statistics: SchedulerStatistics = field(default_factory=SchedulerStatistics)
    distribution: Dict[str, SubjectDistribution] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerResult":
        return cls(
            success=bool(data.get("success", False)),
            timetable=[TimetableEntry.from_dict(e) for e in data.get("timetable", [])],
            conflicts=[Conflict.from_dict(c) for c in data.get("conflicts", [])],
            multi_teacher_slots=[
                MultiTeacherOption.from_dict(o) for o in data.get("multiTeacherSlots", [])
            ],
            statistics=SchedulerStatistics.from_dict(data.get("statistics") or {}),
            distribution={
                subject_id: SubjectDistribution.from_dict(d)
                for subject_id, d in (data.get("distribution") or {}).items()
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "timetable": [e.to_dict() for e in self.timetable],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "multiTeacherSlots": [o.to_dict() for o in self.multi_teacher_slots],
            "statistics": self.statistics.to_dict(),
            "distribution": {sid: d.to_dict() for sid, d in self.distribution.items()},
        }
