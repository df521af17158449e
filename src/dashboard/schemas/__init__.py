from src.dashboard.schemas.project import (
    ContactFields,
    ContactRead,
    FinancialReportRow,
    FinancialSummary,
    FinancialsFields,
    FinancialsPatch,
    FinancialsRead,
    ProjectAggregate,
    ProjectDraft,
    ProjectPatch,
    ProjectStats,
    StatusCountPoint,
    StatusHistoryEntry,
)

__all__ = [
    "ContactFields",
    "ContactRead",
    "FinancialReportRow",
    "FinancialSummary",
    "FinancialsFields",
    "FinancialsPatch",
    "FinancialsRead",
    "ProjectAggregate",
    "ProjectDraft",
    "ProjectPatch",
    "ProjectStats",
    "StatusCountPoint",
    "StatusHistoryEntry",
]
