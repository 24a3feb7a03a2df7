"""Weak area identification across the quiz history."""


def get_category_stats(history: list) -> dict:
    """Correct/total counts per question category across all results."""
    stats: dict = {}
    for result in history:
        for ua in result.user_answers:
            entry = stats.setdefault(ua.category or "Uncategorized", {"correct": 0, "total": 0})
            entry["total"] += 1
            if ua.user_answer == ua.answer:
                entry["correct"] += 1
    return stats


def get_weak_topics(
    history: list,
    threshold: float = 70.0,
    min_seen: int = 3,
    limit: int = 3,
) -> list[dict]:
    """Categories scoring below threshold with at least min_seen questions (worst first)."""
    weak = []
    for category, s in get_category_stats(history).items():
        if s["total"] < min_seen:
            continue
        percentage = s["correct"] / s["total"] * 100
        if percentage < threshold:
            weak.append({
                "category": category,
                "percentage": round(percentage, 1),
                "correct": s["correct"],
                "total": s["total"],
            })
    weak.sort(key=lambda w: w["percentage"])
    return weak[:limit]
