"""
Pydantic schemas for API request/response validation.
Field names follow the dashboard's camelCase JSON; Python code uses snake_case.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from enum import Enum


class SchedulerStrategyEnum(str, Enum):
    BALANCED = "balanced"
    MORNING_HEAVY = "morning-heavy"
    AFTERNOON_HEAVY = "afternoon-heavy"


class EntryStatusEnum(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"


class CamelModel(BaseModel):
    class Config:
        populate_by_name = True


# Auto-generation
class AutoGenerateRequest(CamelModel):
    class_id: str = Field(..., min_length=1, alias="classId")
    school_id: Optional[str] = Field(None, alias="schoolId")
    preserve_existing: bool = Field(False, alias="preserveExisting")
    strategy: SchedulerStrategyEnum = SchedulerStrategyEnum.BALANCED
    seed: Optional[int] = None


class GenerationSummary(CamelModel):
    class_id: str = Field(..., alias="classId")
    seed: int
    total_subjects: int = Field(..., alias="totalSubjects")
    subjects_placed: int = Field(..., alias="subjectsPlaced")
    slots_placed: int = Field(..., alias="slotsPlaced")
    conflicts_found: int = Field(..., alias="conflictsFound")
    multi_teacher_choices: int = Field(..., alias="multiTeacherChoices")
    entries_saved: int = Field(..., alias="entriesSaved")
    preserve_existing: bool = Field(..., alias="preserveExisting")


class AutoGenerateResponse(CamelModel):
    success: bool
    result: Dict[str, Any]
    summary: GenerationSummary
    next_steps: List[str] = Field(default_factory=list, alias="nextSteps")


# Multi-teacher resolution
class ResolveTeachersRequest(CamelModel):
    class_id: str = Field(..., min_length=1, alias="classId")
    result: Dict[str, Any]
    selections: Dict[str, str]  # timeSlotId -> teacherId


class ResolveTeachersResponse(CamelModel):
    success: bool
    result: Dict[str, Any]
    entries_updated: int = Field(..., alias="entriesUpdated")
    remaining_choices: int = Field(..., alias="remainingChoices")


# Draft lifecycle
class ActivateRequest(CamelModel):
    class_id: str = Field(..., min_length=1, alias="classId")
    academic_year: str = Field(..., min_length=1, alias="academicYear")


class DiscardRequest(CamelModel):
    class_id: str = Field(..., min_length=1, alias="classId")


class ValidateRequest(CamelModel):
    class_id: str = Field(..., min_length=1, alias="classId")
    status: Optional[EntryStatusEnum] = None


# Manual entry editing
class TimetableEntryCreate(CamelModel):
    class_id: str = Field(..., min_length=1, alias="classId")
    subject_id: Optional[str] = Field(None, min_length=1, alias="subjectId")
    teacher_id: Optional[str] = Field(None, min_length=1, alias="teacherId")
    time_slot_id: str = Field(..., min_length=1, alias="timeSlotId")
    academic_year: Optional[str] = Field(None, min_length=1, alias="academicYear")
    status: EntryStatusEnum = EntryStatusEnum.DRAFT


class TimetableEntryUpdate(CamelModel):
    subject_id: Optional[str] = Field(None, min_length=1, alias="subjectId")
    teacher_id: Optional[str] = Field(None, min_length=1, alias="teacherId")
    time_slot_id: Optional[str] = Field(None, min_length=1, alias="timeSlotId")
    status: Optional[EntryStatusEnum] = None


class TimetableEntryResponse(CamelModel):
    id: str
    class_id: str = Field(..., alias="classId")
    subject_id: Optional[str] = Field(None, alias="subjectId")
    teacher_id: Optional[str] = Field(None, alias="teacherId")
    time_slot_id: str = Field(..., alias="timeSlotId")
    academic_year: str = Field(..., alias="academicYear")
    status: EntryStatusEnum
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class ConflictReport(CamelModel):
    type: str
    message: str
    subject_id: str = Field(..., alias="subjectId")
    time_slot_id: Optional[str] = Field(None, alias="timeSlotId")
    teacher_id: Optional[str] = Field(None, alias="teacherId")


class ValidationReport(CamelModel):
    is_valid: bool = Field(..., alias="isValid")
    total_entries: int = Field(..., alias="totalEntries")
    total_conflicts: int = Field(..., alias="totalConflicts")
    conflicts: List[ConflictReport]


# Error Response
class ErrorResponse(CamelModel):
    error: str
    reason: Optional[str] = None
    suggestions: Optional[List[str]] = None
    missing_data: Optional[Dict[str, bool]] = Field(None, alias="missingData")
