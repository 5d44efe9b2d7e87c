"""
Errors raised by the timetable services. Routes map them to HTTP responses.
"""

from typing import Dict, List, Optional


class SchedulingError(Exception):
    """Base class for service-level failures around the scheduler."""


class ClassNotFoundError(SchedulingError):
    def __init__(self, class_id: str):
        super().__init__(f"Class {class_id} not found")
        self.class_id = class_id


class PrerequisiteError(SchedulingError):
    """The class is missing data the scheduler needs (subjects, teachers, slots...)."""

    def __init__(
        self,
        reason: str,
        suggestions: Optional[List[str]] = None,
        missing_data: Optional[Dict[str, bool]] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.suggestions = suggestions or []
        self.missing_data = missing_data or {}


class DraftNotFoundError(SchedulingError):
    def __init__(self, class_id: str, action: str):
        super().__init__(f"No draft timetable found to {action}")
        self.class_id = class_id
