"""Locale catalogs and the translator injected into formatters.

Formatters never reach for a global language setting; callers pass a
Translator built for the user's language.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

DAY_KEYS = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)
MONTH_KEYS = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)

CATALOGS: dict[str, dict[str, str]] = {
    "en": {
        "common.today": "Today",
        "common.tomorrow": "Tomorrow",
        "common.am": "AM",
        "common.pm": "PM",
        "common.dayNames.sunday": "Sunday",
        "common.dayNames.monday": "Monday",
        "common.dayNames.tuesday": "Tuesday",
        "common.dayNames.wednesday": "Wednesday",
        "common.dayNames.thursday": "Thursday",
        "common.dayNames.friday": "Friday",
        "common.dayNames.saturday": "Saturday",
        "common.monthAbbr.jan": "Jan",
        "common.monthAbbr.feb": "Feb",
        "common.monthAbbr.mar": "Mar",
        "common.monthAbbr.apr": "Apr",
        "common.monthAbbr.may": "May",
        "common.monthAbbr.jun": "Jun",
        "common.monthAbbr.jul": "Jul",
        "common.monthAbbr.aug": "Aug",
        "common.monthAbbr.sep": "Sep",
        "common.monthAbbr.oct": "Oct",
        "common.monthAbbr.nov": "Nov",
        "common.monthAbbr.dec": "Dec",
        "schedule.repeat.daily": "Daily",
        "schedule.repeat.weekdays": "Weekdays",
        "schedule.repeat.weekends": "Weekends",
        "schedule.repeat.weekly": "Weekly",
        "schedule.repeat.biweekly": "Every 2 weeks",
        "schedule.repeat.monthly": "Monthly",
        "schedule.repeat.every3months": "Every 3 months",
        "schedule.repeat.every6months": "Every 6 months",
        "schedule.repeat.yearly": "Yearly",
        "activity.someone": "Someone",
        "completion.doneToday": "Done for today!",
        "completion.doneThisWeek": "Done for this week!",
        "completion.doneThisMonth": "Done for this month!",
        "completion.doneThisYear": "Done for this year!",
        "task.dueToday": "Due today",
        "task.dueTomorrow": "Due tomorrow",
        "task.dueInDays_one": "Due in {count} day",
        "task.dueInDays_other": "Due in {count} days",
        "task.dueInWeeks_one": "Due in {count} week",
        "task.dueInWeeks_other": "Due in {count} weeks",
        "task.dueInMonths_one": "Due in {count} month",
        "task.dueInMonths_other": "Due in {count} months",
        "task.noSchedule": "No schedule",
        "notification.title": "🔔 {task}",
        "notification.body": "{member}'s turn - {schedule}",
        "notification.dueSoon": "Due soon",
        "agenda.empty": "No groups yet.",
        "agenda.overdue": "overdue",
        "agenda.unassigned": "unassigned",
    },
    "es": {
        "common.today": "Hoy",
        "common.tomorrow": "Mañana",
        "common.am": "a. m.",
        "common.pm": "p. m.",
        "common.dayNames.sunday": "Domingo",
        "common.dayNames.monday": "Lunes",
        "common.dayNames.tuesday": "Martes",
        "common.dayNames.wednesday": "Miércoles",
        "common.dayNames.thursday": "Jueves",
        "common.dayNames.friday": "Viernes",
        "common.dayNames.saturday": "Sábado",
        "common.monthAbbr.jan": "ene",
        "common.monthAbbr.feb": "feb",
        "common.monthAbbr.mar": "mar",
        "common.monthAbbr.apr": "abr",
        "common.monthAbbr.may": "may",
        "common.monthAbbr.jun": "jun",
        "common.monthAbbr.jul": "jul",
        "common.monthAbbr.aug": "ago",
        "common.monthAbbr.sep": "sept",
        "common.monthAbbr.oct": "oct",
        "common.monthAbbr.nov": "nov",
        "common.monthAbbr.dec": "dic",
        "schedule.repeat.daily": "Diario",
        "schedule.repeat.weekdays": "Entre semana",
        "schedule.repeat.weekends": "Fines de semana",
        "schedule.repeat.weekly": "Semanal",
        "schedule.repeat.biweekly": "Cada 2 semanas",
        "schedule.repeat.monthly": "Mensual",
        "schedule.repeat.every3months": "Cada 3 meses",
        "schedule.repeat.every6months": "Cada 6 meses",
        "schedule.repeat.yearly": "Anual",
        "activity.someone": "Alguien",
        "completion.doneToday": "¡Hecho por hoy!",
        "completion.doneThisWeek": "¡Hecho esta semana!",
        "completion.doneThisMonth": "¡Hecho este mes!",
        "completion.doneThisYear": "¡Hecho este año!",
        "task.dueToday": "Vence hoy",
        "task.dueTomorrow": "Vence mañana",
        "task.dueInDays_one": "Vence en {count} día",
        "task.dueInDays_other": "Vence en {count} días",
        "task.dueInWeeks_one": "Vence en {count} semana",
        "task.dueInWeeks_other": "Vence en {count} semanas",
        "task.dueInMonths_one": "Vence en {count} mes",
        "task.dueInMonths_other": "Vence en {count} meses",
        "task.noSchedule": "Sin horario",
        "notification.body": "Turno de {member} - {schedule}",
        "notification.dueSoon": "Vence pronto",
        "agenda.empty": "Aún no hay grupos.",
        "agenda.overdue": "atrasada",
        "agenda.unassigned": "sin asignar",
    },
}


class Translator(Protocol):
    """Anything that resolves a message key with interpolation values."""

    def t(self, key: str, **values: object) -> str: ...


class CatalogTranslator:
    """Translator backed by CATALOGS, falling back to English, then to the key."""

    def __init__(self, language: str = DEFAULT_LANGUAGE) -> None:
        if language not in CATALOGS:
            logger.warning("Unsupported language %r, using %s", language, DEFAULT_LANGUAGE)
            language = DEFAULT_LANGUAGE
        self.language = language
        self._catalog = CATALOGS[language]
        self._fallback = CATALOGS[DEFAULT_LANGUAGE]

    def _lookup(self, key: str) -> str | None:
        return self._catalog.get(key, self._fallback.get(key))

    def t(self, key: str, **values: object) -> str:
        template = None
        count = values.get("count")
        if isinstance(count, int):
            suffix = "_one" if count == 1 else "_other"
            template = self._lookup(key + suffix)
        if template is None:
            template = self._lookup(key)
        if template is None:
            return key
        try:
            return template.format(**values)
        except (KeyError, IndexError):
            logger.warning("Missing interpolation value for %r", key)
            return template


def day_name(translator: Translator, weekday: int) -> str:
    """Localized name for a Sunday = 0 weekday index."""
    return translator.t(f"common.dayNames.{DAY_KEYS[weekday]}")


def month_abbr(translator: Translator, month: int) -> str:
    """Localized abbreviation for a 1-based month."""
    return translator.t(f"common.monthAbbr.{MONTH_KEYS[month - 1]}")
