"""Readiness dashboard scoring and statistics."""
from exam_academy.quiz import get_average_score, get_exams_practiced, get_history
from exam_academy.review import get_weak_topics

PASS_MARK = 70.0


def get_readiness_label(score: float) -> str:
    if score >= 80:
        return "READY"
    elif score >= 65:
        return "LIKELY"
    elif score >= 50:
        return "NEEDS WORK"
    return "NOT READY"


def get_readiness_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"


def calc_readiness_score(history: list) -> float:
    """Blend of the historical average and the most recent attempt.

    ``history`` is newest first, as returned by ``get_history``.
    """
    if not history:
        return 0.0
    average = sum(r.percentage for r in history) / len(history)
    latest = history[0].percentage
    # Weighted: history 60%, latest 40%
    return round(average * 0.6 + latest * 0.4, 1)


def get_dashboard(db_path: str) -> dict:
    history = get_history(db_path)
    readiness = calc_readiness_score(history)
    return {
        "attempts": len(history),
        "average_score": get_average_score(db_path),
        "readiness": readiness,
        "label": get_readiness_label(readiness),
        "exams_practiced": get_exams_practiced(db_path),
        "passed": sum(1 for r in history if r.percentage >= PASS_MARK),
        "weak_topics": get_weak_topics(history),
        "recent": history[:10],
    }
