"""Tests for dashboard figures (src/dashboard/services/analytics.py)."""

from datetime import UTC, datetime, timedelta

import pytest

from src.dashboard.models.enums import ProjectStatus
from src.dashboard.schemas.project import (
    FinancialReportRow,
    ProjectAggregate,
    StatusHistoryEntry,
)
from src.dashboard.services.analytics import financial_summary, project_stats, status_timeline

pytestmark = pytest.mark.unit

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def project(project_id: int, status: ProjectStatus) -> ProjectAggregate:
    return ProjectAggregate.from_rows(
        {
            "id": project_id,
            "owner_id": "owner-1",
            "name": f"P{project_id}",
            "status": status.value,
            "created_at": T0,
            "updated_at": T0,
        }
    )


def entry(project_id: int, status: ProjectStatus, minutes: int) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        project_id=project_id,
        owner_id="owner-1",
        status=status,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def report(expenses: float, profits: float) -> FinancialReportRow:
    return FinancialReportRow.derive(
        project_id=1,
        owner_id="owner-1",
        name="P1",
        status=ProjectStatus.PENDING,
        expenses=expenses,
        profits=profits,
        created_at=T0,
    )


class TestProjectStats:
    def test_counts_per_status(self):
        stats = project_stats(
            [
                project(1, ProjectStatus.PENDING),
                project(2, ProjectStatus.IN_WORK),
                project(3, ProjectStatus.DONE),
                project(4, ProjectStatus.DONE),
            ]
        )

        assert stats.model_dump() == {"total": 4, "pending": 1, "in_work": 1, "done": 2}

    def test_empty(self):
        assert project_stats([]).total == 0


class TestFinancialSummary:
    def test_totals(self):
        summary = financial_summary([report(100, 300), report(250, 50)])

        assert summary.total_expenses == 350
        assert summary.total_profits == 350
        assert summary.net_profit == 0

    def test_empty(self):
        summary = financial_summary([])

        assert (summary.total_expenses, summary.total_profits, summary.net_profit) == (0, 0, 0)


class TestStatusTimeline:
    def test_replays_history_in_time_order(self):
        history = [
            entry(1, ProjectStatus.IN_WORK, 10),
            entry(1, ProjectStatus.PENDING, 0),
            entry(2, ProjectStatus.PENDING, 5),
            entry(1, ProjectStatus.DONE, 20),
        ]

        points = status_timeline(history)

        assert [p.timestamp for p in points] == sorted(p.timestamp for p in points)
        assert [(p.pending, p.in_work, p.done) for p in points] == [
            (1, 0, 0),
            (2, 0, 0),
            (1, 1, 0),
            (1, 0, 1),
        ]

    def test_empty_history(self):
        assert status_timeline([]) == []
