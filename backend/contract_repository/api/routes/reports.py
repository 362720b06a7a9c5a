from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from contract_repository.api.deps import get_db
from contract_repository.schemas import (
    ContractStatistics,
    DepartmentCount,
    ExpirationReport,
    MonthlyTrend,
    StatusCount,
    StatusValue,
)
from contract_repository.services import contract_reports
from contract_repository.services.contract_views import to_summaries

router = APIRouter(prefix="/reports", tags=["reports"])

_DB_DEP = Depends(get_db)


@router.get("/statistics", response_model=ContractStatistics)
def statistics(
    as_of: Optional[date] = Query(None, description="Evaluation date, defaults to today."),
    db: Session = _DB_DEP,
):
    stats = contract_reports.contract_statistics(db, today=as_of)
    return ContractStatistics(**asdict(stats))


@router.get("/status-counts", response_model=List[StatusCount])
def status_counts(db: Session = _DB_DEP):
    counts = contract_reports.count_by_status(db)
    return [StatusCount(status=s, count=n) for s, n in sorted(counts.items(), key=lambda kv: kv[0].value)]


@router.get("/status-values", response_model=List[StatusValue])
def status_values(db: Session = _DB_DEP):
    totals = contract_reports.total_value_by_status(db)
    return [StatusValue(status=s, total_value=v) for s, v in sorted(totals.items(), key=lambda kv: kv[0].value)]


@router.get("/department-counts", response_model=List[DepartmentCount])
def department_counts(db: Session = _DB_DEP):
    return [
        DepartmentCount(internal_department=d, count=n)
        for d, n in contract_reports.count_by_department(db).items()
    ]


@router.get("/monthly-trends", response_model=List[MonthlyTrend])
def monthly_trends(since: date = Query(...), db: Session = _DB_DEP):
    return [
        MonthlyTrend(year=y, month=m, count=n)
        for y, m, n in contract_reports.monthly_trends(db, since=since)
    ]


@router.get("/expiration", response_model=ExpirationReport)
def expiration_report(
    threshold_days: Optional[int] = Query(None, ge=0, le=3650),
    as_of: Optional[date] = Query(None),
    db: Session = _DB_DEP,
):
    report = contract_reports.expiration_report(db, today=as_of, threshold_days=threshold_days)
    return ExpirationReport(
        as_of=report.as_of,
        threshold_days=report.threshold_days,
        expired=to_summaries(report.expired, today=report.as_of, expiring_threshold_days=report.threshold_days),
        expiring_soon=to_summaries(
            report.expiring_soon, today=report.as_of, expiring_threshold_days=report.threshold_days
        ),
        renewal_reminders_due=to_summaries(
            report.renewal_reminders_due, today=report.as_of, expiring_threshold_days=report.threshold_days
        ),
    )
