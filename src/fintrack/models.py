from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable


@dataclass
class User:
    id: int
    name: str
    currency: str = "USD"


@dataclass
class Category:
    id: int
    name: str
    category_type: str  # income or expense
    user_id: int | None = None  # None = shared default


@dataclass
class Transaction:
    id: int | None
    user_id: int
    date: str  # ISO 8601
    description: str
    amount: float  # always positive, direction lives in type
    type: str  # income or expense
    currency: str = "USD"
    category_id: int | None = None
    category_name: str | None = None
    is_anomaly_dismissed: bool = False
    import_id: int | None = None


@dataclass
class Budget:
    id: int | None
    user_id: int
    category_id: int
    amount: float  # USD
    description: str | None = None


@dataclass
class ImportRecord:
    id: int | None
    user_id: int
    filename: str
    import_date: str | None = None
    record_count: int | None = None
    date_range_start: str | None = None
    date_range_end: str | None = None
    checksum: str | None = None


@dataclass
class ColumnMap:
    """Header chosen for each slot of a statement row, None when no header matched."""
    date: str | None = None
    description: str | None = None
    category: str | None = None
    debit: str | None = None
    credit: str | None = None
    amount: str | None = None


@dataclass
class StagedTransaction:
    """A candidate transaction produced by an import, not yet persisted."""
    date: str  # ISO 8601
    description: str
    amount: Decimal  # magnitude, never negative
    type: str  # income or expense
    currency: str = "USD"
    category_hint: str | None = None
    category_id: int | None = None
    active: bool = True


@dataclass
class ImportPreview:
    unique: list[StagedTransaction] = field(default_factory=list)
    duplicates: list[StagedTransaction] = field(default_factory=list)
    filename: str | None = None
    checksum: str | None = None
    previously_imported: bool = False


@dataclass
class ConfirmResult:
    imported_count: int
    failed_count: int = 0
    import_id: int | None = None


@dataclass
class AnomalyFlag:
    transaction: Transaction
    reason: str
    severity: str  # medium or high


@dataclass
class BudgetStatus:
    category_id: int
    limit: float
    spent: float
    exceeded: bool


@dataclass
class ParserInfo:
    """Metadata and parse function for a statement file format."""
    key: str
    name: str
    file_extensions: list[str]
    parse: Callable
    mime_types: list[str] = field(default_factory=list)
    version: str = "1.0"
    detect: Callable | None = None


@dataclass
class Saving:
    id: int | None
    user_id: int
    source: str  # bank account, fixed deposit, shares, ...
    amount: float
    description: str | None = None
    is_primary: bool = False


@dataclass
class SavingPlan:
    id: int | None
    user_id: int
    goal_name: str
    target_amount: float
    month: str | None = None  # YYYY-MM
    is_completed: bool = False


@dataclass
class SavingsOverview:
    savings: list[Saving]  # primary source already reduced by the deficit
    plans: list[SavingPlan]
    total: float
    raw_total: float  # before the deficit is deducted
    deficit: float
