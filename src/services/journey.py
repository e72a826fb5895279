"""
Member journey calculations: attendance streaks, giving aggregates and activity feeds
"""

import calendar
from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Any, Iterable, List, Optional

from utils.helpers import parse_timestamp, utc_now

STREAK_GAP_DAYS = 7
GIVING_STREAK_MAX_MONTHS = 12
RECENT_GIVING_LIMIT = 10


def calculate_attendance_streak(dates: Iterable, now: Optional[datetime] = None) -> int:
    """
    Count consecutive weekly attendance, newest first.

    The anchor starts at now. A record counts while it is no more than seven
    whole days before the anchor, and then becomes the anchor. The first
    larger gap ends the streak. Future-dated records are ignored.
    """
    now = now or utc_now()
    moments = sorted(
        (moment for moment in (parse_timestamp(d) for d in dates) if moment and moment <= now),
        reverse=True
    )

    streak = 0
    anchor = now
    for moment in moments:
        if (anchor - moment).days <= STREAK_GAP_DAYS:
            streak += 1
            anchor = moment
        else:
            break
    return streak


def _amount(record: Dict[str, Any]) -> Decimal:
    return Decimal(str(record.get("amount") or 0))


def _money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01")))


def giving_streak(moments: Iterable[datetime], now: Optional[datetime] = None) -> int:
    """Consecutive calendar months with giving, counting back from the current month"""
    now = now or utc_now()
    months = {(moment.year, moment.month) for moment in moments}

    streak = 0
    year, month = now.year, now.month
    for _ in range(GIVING_STREAK_MAX_MONTHS):
        if (year, month) not in months:
            break
        streak += 1
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return streak


def summarize_giving(records: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Aggregate a member's giving records.

    Only completed payments count. Amounts are summed as Decimals and reported
    rounded to cents.
    """
    now = now or utc_now()
    completed = [
        record for record in records
        if record.get("payment_status", "completed") == "completed" and record.get("date")
    ]
    dated = sorted(
        ((parse_timestamp(record["date"]), record) for record in completed),
        key=lambda pair: pair[0],
        reverse=True
    )

    total = sum((_amount(r) for _, r in dated), Decimal("0"))
    yearly = [(m, r) for m, r in dated if m.year == now.year]
    monthly = [(m, r) for m, r in yearly if m.month == now.month]
    twelve_months_ago = now - timedelta(days=365)
    last_twelve = [(m, r) for m, r in dated if m >= twelve_months_ago]

    category_totals: Dict[str, Dict[str, Any]] = {}
    for _, record in dated:
        category = record.get("category") or "other"
        bucket = category_totals.setdefault(category, {"total": Decimal("0"), "count": 0})
        bucket["total"] += _amount(record)
        bucket["count"] += 1

    category_breakdown = [
        {
            "category": category,
            "total": _money(bucket["total"]),
            "count": bucket["count"],
            "percentage": int(round(bucket["total"] / total * 100)) if total > 0 else 0,
        }
        for category, bucket in sorted(category_totals.items(), key=lambda item: item[1]["total"], reverse=True)
    ]

    months: "OrderedDict[int, Dict[str, Any]]" = OrderedDict(
        (month, {"month": month, "month_name": calendar.month_name[month], "total": Decimal("0"), "count": 0})
        for month in range(1, now.month + 1)
    )
    for moment, record in yearly:
        if moment.month in months:
            months[moment.month]["total"] += _amount(record)
            months[moment.month]["count"] += 1
    monthly_breakdown = [dict(entry, total=_money(entry["total"])) for entry in months.values()]

    return {
        "total_giving": _money(total),
        "total_donations": len(dated),
        "yearly_giving": _money(sum((_amount(r) for _, r in yearly), Decimal("0"))),
        "yearly_donations": len(yearly),
        "monthly_giving": _money(sum((_amount(r) for _, r in monthly), Decimal("0"))),
        "monthly_donations": len(monthly),
        "average_donation": _money(total / len(dated)) if dated else 0.0,
        "monthly_average": _money(sum((_amount(r) for _, r in last_twelve), Decimal("0")) / 12),
        "category_breakdown": category_breakdown,
        "monthly_breakdown": monthly_breakdown,
        "last_giving_date": dated[0][0].isoformat() if dated else None,
        "giving_streak": giving_streak((m for m, _ in dated), now),
        "recent_giving": [record for _, record in dated[:RECENT_GIVING_LIMIT]],
    }


def merge_recent_activities(
    attendance: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
    givings: List[Dict[str, Any]],
    limit: int = 5
) -> List[Dict[str, Any]]:
    """Build one newest-first feed from attendance, task and giving records"""
    feed = []
    for record in attendance:
        feed.append({
            "type": "attendance",
            "title": f"Attended {record.get('event_name') or 'an event'}",
            "date": record.get("date"),
            "reference_id": record.get("record_id"),
        })
    for task in tasks:
        completed = task.get("status") == "completed"
        feed.append({
            "type": "task_completed" if completed else "task_assigned",
            "title": f"{'Completed' if completed else 'Assigned'} task: {task.get('title')}",
            "date": task.get("completed_at") or task.get("updated_at") or task.get("created_at"),
            "reference_id": task.get("task_id"),
        })
    for giving in givings:
        feed.append({
            "type": "giving",
            "title": f"Gave {giving.get('category', 'offering').replace('_', ' ')}",
            "date": giving.get("date"),
            "amount": giving.get("amount"),
            "reference_id": giving.get("giving_id"),
        })

    feed = [item for item in feed if item["date"]]
    feed.sort(key=lambda item: parse_timestamp(item["date"]), reverse=True)
    return feed[:limit]
