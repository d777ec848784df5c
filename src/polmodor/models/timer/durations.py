"""Duration policy: session kind -> configured length in seconds."""

from polmodor.models.config_models import TimerSettings

from .session import SessionKind


def duration_for(kind: SessionKind, settings: TimerSettings) -> int:
    """Get the nominal duration in seconds for *kind* under *settings*.

    The minute values are already clamped by ``TimerSettings``.
    """
    if kind is SessionKind.WORK:
        minutes = settings.work_minutes
    elif kind is SessionKind.SHORT_BREAK:
        minutes = settings.short_break_minutes
    else:
        minutes = settings.long_break_minutes
    return minutes * 60
