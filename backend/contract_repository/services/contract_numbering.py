from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from contract_repository import models

NUMBER_PREFIX = "BP"


@dataclass(frozen=True)
class ContractNumber:
    year: int
    type_code: str
    seq: int
    formatted: str


def format_contract_number(*, year: int, type_code: str, seq: int) -> str:
    """Format: BP-2025-SOFTWARE_LICENSE-0001.

    - `seq` is 1-based and zero padded to four digits (wider values are kept as is).
    """

    return f"{NUMBER_PREFIX}-{year:04d}-{type_code}-{seq:04d}"


def exists_by_number(db: Session, contract_number: str) -> bool:
    stmt = select(models.Contract.id).where(models.Contract.contract_number == str(contract_number))
    return db.execute(stmt.limit(1)).first() is not None


def count_contracts(db: Session) -> int:
    return int(db.execute(select(func.count(models.Contract.id))).scalar() or 0)


def next_contract_number(
    db: Session,
    *,
    type_code: str,
    today: date | None = None,
    reserved: set[str] | None = None,
    max_probes: int = 10_000,
) -> ContractNumber:
    """Probe for the first free number starting at (total contracts + 1).

    Best effort only: two sessions can pick the same number before either
    commits. The unique constraint on contracts.contract_number is what
    actually rejects the loser. `reserved` holds numbers already handed out
    inside the current unit of work but not yet flushed.
    """

    today = today or date.today()
    reserved = reserved or set()
    seq = count_contracts(db) + 1

    for _ in range(max_probes):
        formatted = format_contract_number(year=today.year, type_code=str(type_code), seq=seq)
        if formatted not in reserved and not exists_by_number(db, formatted):
            return ContractNumber(year=today.year, type_code=str(type_code), seq=seq, formatted=formatted)
        seq += 1

    raise RuntimeError(
        f"Could not allocate contract number for type_code={type_code} year={today.year}"
    )
