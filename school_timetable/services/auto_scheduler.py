"""
Auto-scheduler engine for per-class timetable generation.

Subject-first greedy placement: subjects are taken in priority order, high-load
subjects may get one double period, and the remaining hours go to the
best-scoring free slots. Scoring favours the active strategy's half of the day
and spreads a subject across the week.

The engine is a pure function of its inputs. All randomness comes from the
``random.Random`` instance handed in, so a fixed seed reproduces a timetable
exactly; different seeds give different, equally valid, timetables.
"""

import logging
import random
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from school_timetable.services.scheduler_types import (
    Conflict, ConflictType, EntryStatus, MultiTeacherOption, SchedulerConstraints,
    SchedulerResult, SchedulerStrategy, Subject, SubjectDistribution, TeacherAssignment,
    TeacherOption, TimeSlot, TimetableEntry
)
from school_timetable.services.validators import TimetableValidator, get_day_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerConfig:
    """Tunables for the placement heuristics."""
    double_period_min_hours: int = 4
    double_period_probability: float = 0.6
    # (weekly hours threshold, minimum distinct days), highest threshold first
    distribution_rules: Tuple[Tuple[int, int], ...] = ((5, 3), (3, 2), (1, 1))
    jitter: float = 0.1
    pair_jitter: float = 0.1
    preferred_weight: float = 1.8
    morning_cutoff: str = "11:00"
    afternoon_start: str = "13:00"
    new_day_bonus: float = 1.5
    success_ratio: float = 0.8


DEFAULT_CONFIG = SchedulerConfig()


@dataclass
class SlotOption:
    slot: TimeSlot
    score: float
    teachers: List[TeacherAssignment]


@dataclass
class DoubleSlotOption:
    slots: Tuple[TimeSlot, TimeSlot]
    score: float
    teachers: List[TeacherAssignment]


def get_target_distribution_days(weekly_hours: int, config: SchedulerConfig = DEFAULT_CONFIG) -> int:
    """Minimum number of distinct days a subject's hours should be spread over."""
    for threshold, target_days in config.distribution_rules:
        if weekly_hours >= threshold:
            return target_days
    return min(weekly_hours, 1)


def get_strategy_weight(
    slot: TimeSlot,
    strategy: SchedulerStrategy,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> float:
    if strategy == SchedulerStrategy.MORNING_HEAVY:
        return config.preferred_weight if slot.start_time < config.morning_cutoff else 1.0
    if strategy == SchedulerStrategy.AFTERNOON_HEAVY:
        return config.preferred_weight if slot.start_time >= config.afternoon_start else 1.0
    return 1.0


def count_consecutive(slots: Iterable[TimeSlot]) -> int:
    """Number of back-to-back pairs among ``slots`` (all on one day)."""
    ordered = sorted(slots, key=lambda s: s.start_time)
    return sum(1 for current, following in zip(ordered, ordered[1:]) if current.end_time == following.start_time)


def calculate_distribution_quality(distribution: Mapping[str, SubjectDistribution]) -> float:
    """Mean of 0.5 per subject meeting its day target plus 0.5 per balanced subject."""
    if not distribution:
        return 0.0
    total = 0.0
    for subject in distribution.values():
        if subject.meets_target:
            total += 0.5
        if subject.is_balanced:
            total += 0.5
    return total / len(distribution)


class AutoScheduler:
    """
    Plans one class's week. Bookkeeping lives on the instance, so build a
    fresh scheduler for every run (``generate_schedule_for_class`` does).
    """

    def __init__(
        self,
        constraints: SchedulerConstraints,
        rng: Optional[random.Random] = None,
        config: SchedulerConfig = DEFAULT_CONFIG,
    ):
        self.constraints = constraints
        self.rng = rng if rng is not None else random.Random()
        self.config = config
        self.strategy = SchedulerStrategy(constraints.strategy)
        self.validator = TimetableValidator(constraints.time_slots, constraints.teacher_availability)

        self.slot_lookup: Dict[str, TimeSlot] = {slot.id: slot for slot in constraints.time_slots}
        self.teaching_slots: List[TimeSlot] = [slot for slot in constraints.time_slots if not slot.is_break]

        # Tracking
        self.used_slots: Set[str] = set()
        self.teacher_schedule: Dict[str, Set[str]] = defaultdict(set)
        self.subject_distribution: Dict[str, Dict[int, int]] = {}
        self.placed_slots: Dict[str, List[TimeSlot]] = defaultdict(list)
        self.result = SchedulerResult()

    def generate(self) -> SchedulerResult:
        constraints = self.constraints
        stats = self.result.statistics

        stats.total_slots_needed = sum(subject.weekly_hours for subject in constraints.subjects)
        assignments_by_subject = self._group_assignments()
        subjects = self._prioritize_subjects(assignments_by_subject)
        stats.total_subjects = len(subjects)
        for subject in subjects:
            self.subject_distribution[subject.id] = {}

        if constraints.preserve_existing:
            self._absorb_existing()

        for subject in subjects:
            self._place_subject(subject, assignments_by_subject.get(subject.id, []))

        self.result.distribution = self._distribution_metrics(subjects)
        stats.days_with_classes = len(self._days_with_classes())
        stats.distribution_quality = calculate_distribution_quality(self.result.distribution)

        self.result.success = (
            not self.result.conflicts
            and stats.subjects_placed == stats.total_subjects
            and stats.slots_placed >= stats.total_slots_needed * self.config.success_ratio
        )

        logger.info(
            f"Scheduled class {constraints.class_id} ({self.strategy.value}): "
            f"{stats.slots_placed}/{stats.total_slots_needed} slots, "
            f"{stats.subjects_placed}/{stats.total_subjects} subjects, "
            f"{stats.double_period_count} double periods, {len(self.result.conflicts)} conflicts"
        )
        return self.result

    # ── Setup ─────────────────────────────────────────────────────────────────

    def _group_assignments(self) -> Dict[str, List[TeacherAssignment]]:
        grouped: Dict[str, List[TeacherAssignment]] = defaultdict(list)
        for assignment in self.constraints.teacher_assignments:
            teachers = grouped[assignment.subject_id]
            if all(a.teacher_id != assignment.teacher_id for a in teachers):
                teachers.append(assignment)
        return grouped

    def _prioritize_subjects(self, assignments_by_subject: Mapping[str, List[TeacherAssignment]]) -> List[Subject]:
        """Most weekly hours first; among equals, the subject with fewest teachers."""
        return sorted(
            (subject for subject in self.constraints.subjects if subject.weekly_hours > 0),
            key=lambda s: (-s.weekly_hours, len(assignments_by_subject.get(s.id, ()))),
        )

    def _absorb_existing(self) -> None:
        for entry in self.constraints.existing_timetable:
            self.used_slots.add(entry.time_slot_id)
            self.teacher_schedule[entry.teacher_id].add(entry.time_slot_id)
            self.result.timetable.append(replace(entry, status=EntryStatus.DRAFT))
            self.result.statistics.slots_placed += 1

    # ── Placement ─────────────────────────────────────────────────────────────

    def _place_subject(self, subject: Subject, assignments: List[TeacherAssignment]) -> None:
        if not assignments:
            self._conflict(ConflictType.NO_TEACHER_AVAILABLE, f"No teacher assigned to {subject.name}", subject)
            return

        target_days = get_target_distribution_days(subject.weekly_hours, self.config)
        hours_placed = self._attempt_double_period(subject, assignments)

        for option in self._score_single_slots(subject, assignments, target_days):
            if hours_placed >= subject.weekly_hours:
                break

            slot = option.slot
            available = self._available_teachers(assignments, slot)
            # Not reached while _score_single_slots only offers slots with a free teacher
            if not available:
                self._conflict(
                    ConflictType.NO_TEACHER_AVAILABLE,
                    f"No teacher available for {subject.name} at {slot.start_time}-{slot.end_time} "
                    f"on {get_day_name(slot.day_of_week)}",
                    subject,
                    time_slot_id=slot.id,
                )
                self.result.statistics.slots_conflicted += 1
                continue

            if len(available) > 1:
                self.result.multi_teacher_slots.append(MultiTeacherOption(
                    subject_id=subject.id,
                    time_slot_id=slot.id,
                    teachers=tuple(TeacherOption(a.teacher_id, a.teacher_name) for a in available),
                ))

            # First by assignment order; ambiguous picks are flagged above for review
            self._place(subject, available[0].teacher_id, slot)
            hours_placed += 1

        if hours_placed > 0:
            self.result.statistics.subjects_placed += 1
            if hours_placed < subject.weekly_hours:
                self._conflict(
                    ConflictType.SUBJECT_QUOTA_EXCEEDED,
                    f"Only placed {hours_placed}/{subject.weekly_hours} hours for {subject.name}",
                    subject,
                )
                logger.warning(f"Shortfall for {subject.name}: {hours_placed}/{subject.weekly_hours} hours")
        else:
            self._conflict(
                ConflictType.SUBJECT_QUOTA_EXCEEDED,
                f"Could not place any hours for {subject.name} ({subject.weekly_hours} hours required)",
                subject,
            )
            logger.warning(f"Could not place {subject.name} for class {self.constraints.class_id}")

    def _attempt_double_period(self, subject: Subject, assignments: List[TeacherAssignment]) -> int:
        """Place at most one back-to-back pair for a high-load subject; returns hours placed."""
        config = self.config
        if subject.weekly_hours < config.double_period_min_hours:
            return 0
        # Not every eligible subject gets a double period
        if self.rng.random() > config.double_period_probability:
            return 0

        options: List[DoubleSlotOption] = []
        for first, second in self._consecutive_slot_pairs():
            teachers = [
                a for a in assignments
                if self._is_available(a.teacher_id, first) and self._is_available(a.teacher_id, second)
            ]
            if not teachers:
                continue
            weight = (self._strategy_weight(first) + self._strategy_weight(second)) / 2
            options.append(DoubleSlotOption(
                slots=(first, second),
                score=weight + self.rng.random() * config.pair_jitter,
                teachers=teachers,
            ))

        if not options:
            logger.debug(f"No back-to-back pair free for {subject.name}")
            return 0

        best = max(options, key=lambda o: o.score)
        teacher = best.teachers[0] if len(best.teachers) == 1 else self.rng.choice(best.teachers)
        for slot in best.slots:
            self._place(subject, teacher.teacher_id, slot)
        self.result.statistics.double_period_count += 1
        logger.debug(
            f"Double period for {subject.name} on {get_day_name(best.slots[0].day_of_week)} "
            f"{best.slots[0].start_time}-{best.slots[1].end_time} with {teacher.teacher_name}"
        )
        return len(best.slots)

    def _consecutive_slot_pairs(self) -> List[Tuple[TimeSlot, TimeSlot]]:
        by_day: Dict[int, List[TimeSlot]] = defaultdict(list)
        for slot in self.teaching_slots:
            if slot.id not in self.used_slots:
                by_day[slot.day_of_week].append(slot)

        pairs = []
        for day_slots in by_day.values():
            ordered = sorted(day_slots, key=lambda s: s.start_time)
            pairs.extend((a, b) for a, b in zip(ordered, ordered[1:]) if a.is_followed_by(b))
        return pairs

    def _score_single_slots(
        self,
        subject: Subject,
        assignments: List[TeacherAssignment],
        target_days: int,
    ) -> List[SlotOption]:
        day_counts = self.subject_distribution[subject.id]
        used_days = {day for day, count in day_counts.items() if count > 0}

        placed_by_day: Dict[int, List[TimeSlot]] = defaultdict(list)
        for placed in self.placed_slots[subject.id]:
            placed_by_day[placed.day_of_week].append(placed)

        options: List[SlotOption] = []
        for slot in self.teaching_slots:
            if slot.id in self.used_slots:
                continue
            teachers = self._available_teachers(assignments, slot)
            if not teachers:
                continue

            day = slot.day_of_week
            new_day = day not in used_days and len(used_days) < target_days
            new_day_bonus = self.config.new_day_bonus if new_day else 1.0
            distribution_weight = 1 / (day_counts.get(day, 0) + 1)
            consecutive_weight = 1 / (1 + count_consecutive(placed_by_day.get(day, ())))
            jitter = self.rng.random() * self.config.jitter

            score = self._strategy_weight(slot) * new_day_bonus * distribution_weight * consecutive_weight + jitter
            options.append(SlotOption(slot=slot, score=score, teachers=teachers))

        options.sort(key=lambda o: o.score, reverse=True)
        return options

    def _place(self, subject: Subject, teacher_id: str, slot: TimeSlot) -> None:
        self.result.timetable.append(TimetableEntry(
            class_id=self.constraints.class_id,
            subject_id=subject.id,
            teacher_id=teacher_id,
            time_slot_id=slot.id,
            academic_year=self.constraints.academic_year,
            status=EntryStatus.DRAFT,
        ))
        self.used_slots.add(slot.id)
        self.teacher_schedule[teacher_id].add(slot.id)
        self.placed_slots[subject.id].append(slot)
        day_counts = self.subject_distribution[subject.id]
        day_counts[slot.day_of_week] = day_counts.get(slot.day_of_week, 0) + 1
        self.result.statistics.slots_placed += 1

    def _available_teachers(self, assignments: List[TeacherAssignment], slot: TimeSlot) -> List[TeacherAssignment]:
        return [a for a in assignments if self._is_available(a.teacher_id, slot)]

    def _is_available(self, teacher_id: str, slot: TimeSlot) -> bool:
        return self.validator.is_teacher_available_for_slot(teacher_id, slot, self.teacher_schedule)

    def _strategy_weight(self, slot: TimeSlot) -> float:
        return get_strategy_weight(slot, self.strategy, self.config)

    def _conflict(
        self,
        conflict_type: ConflictType,
        message: str,
        subject: Subject,
        time_slot_id: Optional[str] = None,
    ) -> None:
        self.result.conflicts.append(Conflict(
            type=conflict_type, message=message, subject_id=subject.id, time_slot_id=time_slot_id
        ))

    # ── Metrics ───────────────────────────────────────────────────────────────

    def _distribution_metrics(self, subjects: List[Subject]) -> Dict[str, SubjectDistribution]:
        distribution: Dict[str, SubjectDistribution] = {}
        for subject in subjects:
            by_day = dict(self.subject_distribution.get(subject.id, {}))
            total_hours = sum(by_day.values())
            max_day_share = max(by_day.values(), default=0) / max(total_hours, 1)
            distribution[subject.id] = SubjectDistribution(
                subject_name=subject.name,
                total_hours=total_hours,
                by_day=by_day,
                unique_days=len(by_day),
                meets_target=len(by_day) >= get_target_distribution_days(subject.weekly_hours, self.config),
                is_balanced=total_hours == 0 or max_day_share <= 0.5,
            )
        return distribution

    def _days_with_classes(self) -> Set[int]:
        days = set()
        for entry in self.result.timetable:
            slot = self.slot_lookup.get(entry.time_slot_id)
            if slot is not None and not slot.is_break:
                days.add(slot.day_of_week)
        return days


def generate_schedule_for_class(
    constraints: SchedulerConstraints,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> SchedulerResult:
    """
    Generate a draft timetable for one class.

    Pass ``seed`` (or a ready ``rng``) for reproducible output. Shortfalls never
    raise; they are reported as conflicts and ``success`` is False.
    """
    if rng is None:
        rng = random.Random(seed)
    return AutoScheduler(constraints, rng=rng, config=config).generate()


def resolve_multi_teacher_selections(result: SchedulerResult, selections: Mapping[str, str]) -> SchedulerResult:
    """
    Apply an admin's teacher choices (time slot id -> teacher id) to a result.

    Choices are trusted as-is. Selections for unknown slots are ignored and the
    input result is left untouched.
    """
    timetable = [
        replace(entry, teacher_id=selections[entry.time_slot_id])
        if selections.get(entry.time_slot_id) and selections[entry.time_slot_id] != entry.teacher_id
        else entry
        for entry in result.timetable
    ]
    remaining = [option for option in result.multi_teacher_slots if not selections.get(option.time_slot_id)]

    return SchedulerResult(
        success=result.success,
        timetable=timetable,
        conflicts=list(result.conflicts),
        multi_teacher_slots=remaining,
        statistics=replace(result.statistics),
        distribution={sid: replace(d, by_day=dict(d.by_day)) for sid, d in result.distribution.items()},
    )
