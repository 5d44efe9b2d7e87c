"""
API routes for timetable auto-generation, draft management and hand edits.

Routes are plain ``def`` so FastAPI runs them in its threadpool; the per-class
lock then serializes concurrent writers for the same class without blocking
the event loop.
"""

import logging
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from school_timetable import config
from school_timetable.models.database import get_db
from school_timetable.models.models import (
    SchoolClass, Subject, Teacher, TeacherAvailability, TimeSlot, Timetable
)
from school_timetable.schemas.schemas import (
    ActivateRequest, AutoGenerateRequest, AutoGenerateResponse, ConflictReport, DiscardRequest,
    ErrorResponse, GenerationSummary, ResolveTeachersRequest, ResolveTeachersResponse,
    TimetableEntryCreate, TimetableEntryResponse, TimetableEntryUpdate, ValidateRequest, ValidationReport
)
from school_timetable.services import scheduler_types as st
from school_timetable.services.auto_scheduler import (
    generate_schedule_for_class, resolve_multi_teacher_selections
)
from school_timetable.services.class_locks import class_write_lock
from school_timetable.services.constraint_builder import gather_constraints, validate_prerequisites
from school_timetable.services.errors import ClassNotFoundError, DraftNotFoundError, PrerequisiteError
from school_timetable.services.validators import EntryEditValidator, TimetableValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/timetables", tags=["timetables"])


def _class_or_404(db: Session, class_id: str, school_id: Optional[str] = None) -> SchoolClass:
    query = db.query(SchoolClass).filter(SchoolClass.id == class_id)
    if school_id:
        query = query.filter(SchoolClass.school_id == school_id)
    school_class = query.first()
    if school_class is None:
        raise HTTPException(status_code=404, detail=f"Class {class_id} not found")
    return school_class


def _pick_seed(requested: Optional[int]) -> int:
    if requested is not None:
        return requested
    if config.SCHEDULER_SEED is not None:
        return config.SCHEDULER_SEED
    return int(time.time() * 1000)


def _save_entries(
    db: Session,
    school_id: str,
    result: st.SchedulerResult,
    constraints: st.SchedulerConstraints,
) -> int:
    draft_rows = {e.id for e in constraints.existing_timetable if e.status == st.EntryStatus.DRAFT}
    saved = 0
    for entry in result.timetable:
        # Preserved drafts already have a row; preserved active lessons get a draft copy
        if entry.id in draft_rows:
            continue
        db.add(Timetable(
            school_id=school_id,
            class_id=entry.class_id,
            subject_id=entry.subject_id,
            teacher_id=entry.teacher_id,
            time_slot_id=entry.time_slot_id,
            academic_year=entry.academic_year,
            status=st.EntryStatus.DRAFT.value,
        ))
        saved += 1
    return saved


@router.post("/auto-generate", response_model=AutoGenerateResponse)
def auto_generate(request: AutoGenerateRequest, db: Session = Depends(get_db)):
    school_class = _class_or_404(db, request.class_id, request.school_id)
    try:
        with class_write_lock(request.class_id):
            logger.info(f"Starting auto-generation for class {request.class_id}")
            constraints = gather_constraints(
                db,
                request.class_id,
                school_id=request.school_id,
                strategy=st.SchedulerStrategy(request.strategy.value),
                preserve_existing=request.preserve_existing,
            )
            validate_prerequisites(constraints)

            seed = _pick_seed(request.seed)
            result = generate_schedule_for_class(constraints, seed=seed)

            if not request.preserve_existing:
                db.query(Timetable).filter(
                    Timetable.class_id == request.class_id,
                    Timetable.status == st.EntryStatus.DRAFT.value,
                ).delete(synchronize_session=False)
            saved = _save_entries(db, school_class.school_id, result, constraints)
            db.commit()
            logger.info(f"Auto-generation complete for class {request.class_id}: {saved} entries saved")

        stats = result.statistics
        next_steps = (
            ["Review multi-teacher selections", "Confirm and save timetable"]
            if result.multi_teacher_slots
            else ["Review generated schedule", "Confirm and save timetable"]
        )
        return AutoGenerateResponse(
            success=result.success,
            result=result.to_dict(),
            summary=GenerationSummary(
                class_id=request.class_id,
                seed=seed,
                total_subjects=len(constraints.subjects),
                subjects_placed=stats.subjects_placed,
                slots_placed=stats.slots_placed,
                conflicts_found=len(result.conflicts),
                multi_teacher_choices=len(result.multi_teacher_slots),
                entries_saved=saved,
                preserve_existing=request.preserve_existing,
            ),
            next_steps=next_steps,
        )
    except ClassNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PrerequisiteError as e:
        raise HTTPException(
            status_code=400,
            detail=ErrorResponse(
                error="Cannot generate timetable",
                reason=e.reason,
                suggestions=e.suggestions,
                missing_data=e.missing_data,
            ).model_dump(by_alias=True),
        )
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Auto-generation failed for class {request.class_id}")
        raise HTTPException(status_code=500, detail=f"Error generating timetable: {str(e)}")


@router.post("/resolve-teachers", response_model=ResolveTeachersResponse)
def resolve_teachers(request: ResolveTeachersRequest, db: Session = Depends(get_db)):
    try:
        previous = st.SchedulerResult.from_dict(request.result)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid scheduler result: {str(e)}")

    _class_or_404(db, request.class_id)
    resolved = resolve_multi_teacher_selections(previous, request.selections)
    placed_slots = {entry.time_slot_id for entry in resolved.timetable}

    try:
        updated = 0
        with class_write_lock(request.class_id):
            for time_slot_id, teacher_id in request.selections.items():
                if not teacher_id or time_slot_id not in placed_slots:
                    continue
                rows = db.query(Timetable).filter(
                    Timetable.class_id == request.class_id,
                    Timetable.time_slot_id == time_slot_id,
                    Timetable.status == st.EntryStatus.DRAFT.value,
                ).all()
                for row in rows:
                    row.teacher_id = teacher_id
                    updated += 1
            db.commit()
        logger.info(f"Applied {updated} teacher selections for class {request.class_id}")
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to apply teacher selections for class {request.class_id}")
        raise HTTPException(status_code=500, detail=f"Error applying teacher selections: {str(e)}")

    return ResolveTeachersResponse(
        success=True,
        result=resolved.to_dict(),
        entries_updated=updated,
        remaining_choices=len(resolved.multi_teacher_slots),
    )


@router.get("", response_model=List[TimetableEntryResponse])
def list_timetable(
    class_id: str = Query(..., alias="classId"),
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Timetable).filter(Timetable.class_id == class_id)
    if status:
        query = query.filter(Timetable.status == status)
    return query.order_by(Timetable.created_at, Timetable.id).all()


@router.post("/activate")
def activate_timetable(request: ActivateRequest, db: Session = Depends(get_db)):
    _class_or_404(db, request.class_id)
    try:
        with class_write_lock(request.class_id):
            scope = (
                Timetable.class_id == request.class_id,
                Timetable.academic_year == request.academic_year,
            )
            draft_count = db.query(Timetable).filter(*scope, Timetable.status == "draft").count()
            if draft_count == 0:
                raise DraftNotFoundError(request.class_id, "activate")

            db.query(Timetable).filter(*scope, Timetable.status == "active").delete(synchronize_session=False)
            activated = db.query(Timetable).filter(*scope, Timetable.status == "draft").update(
                {Timetable.status: "active"}, synchronize_session=False
            )
            db.commit()
        logger.info(f"Activated {activated} entries for class {request.class_id} ({request.academic_year})")
        return {
            "success": True,
            "message": "Timetable activated successfully",
            "summary": {
                "classId": request.class_id,
                "academicYear": request.academic_year,
                "entriesActivated": activated,
            },
        }
    except DraftNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error activating timetable: {str(e)}")


@router.post("/discard")
def discard_drafts(request: DiscardRequest, db: Session = Depends(get_db)):
    _class_or_404(db, request.class_id)
    try:
        with class_write_lock(request.class_id):
            drafts = db.query(Timetable).filter(
                Timetable.class_id == request.class_id,
                Timetable.status == "draft",
            )
            draft_count = drafts.count()
            if draft_count == 0:
                raise DraftNotFoundError(request.class_id, "discard")
            drafts.delete(synchronize_session=False)
            db.commit()
        logger.info(f"Discarded {draft_count} draft entries for class {request.class_id}")
        return {
            "success": True,
            "message": "Draft timetable discarded successfully",
            "summary": {"classId": request.class_id, "entriesDiscarded": draft_count},
        }
    except DraftNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error discarding timetable: {str(e)}")


@router.post("/validate", response_model=ValidationReport)
def validate_timetable(request: ValidateRequest, db: Session = Depends(get_db)):
    school_class = _class_or_404(db, request.class_id)

    query = db.query(Timetable).filter(Timetable.class_id == request.class_id)
    if request.status is not None:
        query = query.filter(Timetable.status == request.status.value)
    entries = [
        st.TimetableEntry(
            class_id=row.class_id,
            subject_id=row.subject_id,
            teacher_id=row.teacher_id,
            time_slot_id=row.time_slot_id,
            academic_year=row.academic_year,
            status=st.EntryStatus(row.status),
            id=row.id,
        )
        for row in query.all()
        if row.teacher_id is not None
    ]

    slots = [
        st.TimeSlot(s.id, s.day_of_week, s.start_time, s.end_time, bool(s.is_break))
        for s in db.query(TimeSlot).filter(TimeSlot.school_id == school_class.school_id).all()
    ]
    teacher_ids = {e.teacher_id for e in entries}
    availability = [
        st.AvailabilitySlot(a.teacher_id, a.day_of_week, a.start_time, a.end_time, a.id)
        for a in db.query(TeacherAvailability).filter(TeacherAvailability.teacher_id.in_(teacher_ids)).all()
    ] if teacher_ids else []

    conflicts = TimetableValidator(slots, availability).validate(entries)
    return ValidationReport(
        is_valid=not conflicts,
        total_entries=len(entries),
        total_conflicts=len(conflicts),
        conflicts=[ConflictReport(**c.to_dict()) for c in conflicts],
    )


def _entry_or_404(db: Session, entry_id: str) -> Timetable:
    entry = db.query(Timetable).filter(Timetable.id == entry_id).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Timetable entry not found")
    return entry


def _check_references(
    db: Session,
    school_id: str,
    time_slot_id: str,
    teacher_id: Optional[str] = None,
    subject_id: Optional[str] = None,
) -> TimeSlot:
    """404 unless the slot (and teacher/subject, when given) belong to the school."""
    slot = db.query(TimeSlot).filter(TimeSlot.id == time_slot_id, TimeSlot.school_id == school_id).first()
    if slot is None:
        raise HTTPException(status_code=404, detail="Time slot not found")
    if teacher_id is not None:
        teacher = db.query(Teacher).filter(Teacher.id == teacher_id, Teacher.school_id == school_id).first()
        if teacher is None:
            raise HTTPException(status_code=404, detail="Teacher not found")
    if subject_id is not None:
        subject = db.query(Subject).filter(Subject.id == subject_id, Subject.school_id == school_id).first()
        if subject is None:
            raise HTTPException(status_code=404, detail="Subject not found")
    return slot


@router.post("", response_model=TimetableEntryResponse, status_code=201)
def create_entry(request: TimetableEntryCreate, db: Session = Depends(get_db)):
    school_class = _class_or_404(db, request.class_id)
    school_id = school_class.school_id
    slot = _check_references(db, school_id, request.time_slot_id, request.teacher_id, request.subject_id)

    with class_write_lock(request.class_id):
        ok, reason = EntryEditValidator(db, school_id).can_place(
            request.class_id, request.teacher_id, slot, request.status.value
        )
        if not ok:
            raise HTTPException(status_code=400, detail=reason)

        entry = Timetable(
            school_id=school_id,
            class_id=request.class_id,
            subject_id=request.subject_id,
            teacher_id=request.teacher_id,
            time_slot_id=request.time_slot_id,
            academic_year=request.academic_year or school_class.academic_year or config.DEFAULT_ACADEMIC_YEAR,
            status=request.status.value,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)

    logger.info(f"Created {entry.status} entry {entry.id} for class {entry.class_id} at slot {entry.time_slot_id}")
    return entry


@router.get("/{entry_id}", response_model=TimetableEntryResponse)
def get_entry(entry_id: str, db: Session = Depends(get_db)):
    return _entry_or_404(db, entry_id)


@router.put("/{entry_id}", response_model=TimetableEntryResponse)
def update_entry(entry_id: str, request: TimetableEntryUpdate, db: Session = Depends(get_db)):
    entry = _entry_or_404(db, entry_id)
    changes = request.model_dump(exclude_none=True, mode="json")

    time_slot_id = changes.get("time_slot_id", entry.time_slot_id)
    slot = _check_references(
        db, entry.school_id, time_slot_id, changes.get("teacher_id"), changes.get("subject_id")
    )

    with class_write_lock(entry.class_id):
        ok, reason = EntryEditValidator(db, entry.school_id).can_place(
            entry.class_id,
            changes.get("teacher_id", entry.teacher_id),
            slot,
            changes.get("status", entry.status),
            exclude_entry_id=entry.id,
        )
        if not ok:
            raise HTTPException(status_code=400, detail=reason)

        for field, value in changes.items():
            setattr(entry, field, value)
        db.commit()
        db.refresh(entry)

    logger.info(f"Updated entry {entry.id} for class {entry.class_id}: {', '.join(changes) or 'no changes'}")
    return entry


@router.delete("/{entry_id}")
def delete_entry(entry_id: str, db: Session = Depends(get_db)):
    entry = _entry_or_404(db, entry_id)
    class_id = entry.class_id
    with class_write_lock(class_id):
        db.delete(entry)
        db.commit()
    logger.info(f"Deleted entry {entry_id} from class {class_id}")
    return {"success": True, "message": "Timetable entry deleted successfully"}
