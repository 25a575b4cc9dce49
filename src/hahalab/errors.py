# src/hahalab/errors.py


class PlannerError(Exception):
    """Basisklasse aller Planner-Fehler."""


class EmptyRangeError(PlannerError, ValueError):
    """Enddatum vor Startdatum oder leere Datumsauswahl."""


class InvalidIntervalError(PlannerError, ValueError):
    """Endzeit liegt nicht nach der Startzeit (am selben Tag)."""


class DuplicateChildNameError(PlannerError):
    """Name ist bereits vergeben (이미 등록된 이름)."""


class ScheduleNotFoundError(PlannerError, KeyError):
    pass


class ChildNotFoundError(PlannerError, KeyError):
    pass


class ContentNotFoundError(PlannerError, KeyError):
    pass


class InvalidContentError(PlannerError, ValueError):
    """Titel oder Ziel-URL fehlt, oder unbekannte Kategorie."""
