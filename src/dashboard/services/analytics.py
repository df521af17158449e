"""Dashboard figures derived from projects, reports and status history."""

from collections.abc import Iterable

from src.dashboard.models.enums import ProjectStatus
from src.dashboard.schemas.project import (
    FinancialReportRow,
    FinancialSummary,
    ProjectAggregate,
    ProjectStats,
    StatusCountPoint,
    StatusHistoryEntry,
)


def project_stats(projects: Iterable[ProjectAggregate]) -> ProjectStats:
    """Count projects per status."""
    stats = ProjectStats()
    for project in projects:
        stats.total += 1
        if project.status == ProjectStatus.PENDING:
            stats.pending += 1
        elif project.status == ProjectStatus.IN_WORK:
            stats.in_work += 1
        elif project.status == ProjectStatus.DONE:
            stats.done += 1
    return stats


def financial_summary(reports: Iterable[FinancialReportRow]) -> FinancialSummary:
    """Totals across the report projection."""
    total_expenses = 0.0
    total_profits = 0.0
    for row in reports:
        total_expenses += row.expenses
        total_profits += row.profits
    return FinancialSummary(
        total_expenses=total_expenses,
        total_profits=total_profits,
        net_profit=total_profits - total_expenses,
    )


def status_timeline(history: Iterable[StatusHistoryEntry]) -> list[StatusCountPoint]:
    """Replay status history and emit per-status project counts after each entry.

    Entries are taken in timestamp order; entries sharing a timestamp keep
    their original order.
    """
    current: dict[int, ProjectStatus] = {}
    points: list[StatusCountPoint] = []
    for entry in sorted(history, key=lambda e: e.timestamp):
        current[entry.project_id] = entry.status
        values = list(current.values())
        points.append(
            StatusCountPoint(
                timestamp=entry.timestamp,
                pending=values.count(ProjectStatus.PENDING),
                in_work=values.count(ProjectStatus.IN_WORK),
                done=values.count(ProjectStatus.DONE),
            )
        )
    return points
