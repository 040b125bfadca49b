"""
복식부기 타입 정의

계정 유형, 분개 방향 등 Ledger 시스템에서 사용하는 Enum과
기본 계정과목표(Chart of Accounts) 정의
"""

from enum import Enum


class AccountType(str, Enum):
    """계정 유형

    복식부기의 5대 계정 유형.
    str을 상속하여 JSON 직렬화 가능.
    """

    ASSET = "Asset"  # 자산
    LIABILITY = "Liability"  # 부채
    CAPITAL = "Capital"  # 자본
    REVENUE = "Revenue"  # 수익
    EXPENSE = "Expense"  # 비용


class EntryType(str, Enum):
    """분개 방향 (차변/대변)

    계정의 정상 잔액(normal balance)도 같은 값을 사용.
    """

    DEBIT = "Debit"  # 차변
    CREDIT = "Credit"  # 대변

    @property
    def opposite(self) -> "EntryType":
        """반대 방향 (역분개용)"""
        return EntryType.CREDIT if self is EntryType.DEBIT else EntryType.DEBIT


class AccountSubtype(str, Enum):
    """자산/부채 계정의 유동성 구분

    그 외 계정의 subtype은 자유 텍스트 (정보용).
    """

    CURRENT = "Current"
    NON_CURRENT = "Non-Current"


# 대차대조표 계정 유형
BALANCE_SHEET_TYPES: tuple[AccountType, ...] = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.CAPITAL,
)

# 손익계산서 계정 유형
INCOME_STATEMENT_TYPES: tuple[AccountType, ...] = (
    AccountType.REVENUE,
    AccountType.EXPENSE,
)

# 계정 유형별 코드 시작 번호 (범위 폭은 LedgerLimits.ACCOUNT_CODE_RANGE)
ACCOUNT_CODE_BASE: dict[AccountType, int] = {
    AccountType.ASSET: 1000,
    AccountType.LIABILITY: 2000,
    AccountType.CAPITAL: 3000,
    AccountType.REVENUE: 4000,
    AccountType.EXPENSE: 5000,
}


# 기본 계정과목표 (빈 DB 초기화 시 사용)
DEFAULT_ACCOUNTS: list[tuple[str, str, str, str, str]] = [
    # (code, name, account_type, subtype, normal_balance)

    # 자산 (1xxx)
    ("1001", "Cash", "Asset", "Current", "Debit"),
    ("1002", "Bank Account", "Asset", "Current", "Debit"),
    ("1003", "Accounts Receivable", "Asset", "Current", "Debit"),
    ("1004", "Inventory", "Asset", "Current", "Debit"),
    ("1101", "Office Equipment", "Asset", "Non-Current", "Debit"),
    ("1102", "Furniture & Fixtures", "Asset", "Non-Current", "Debit"),

    # 부채 (2xxx)
    ("2001", "Accounts Payable", "Liability", "Current", "Credit"),
    ("2002", "Loans Payable", "Liability", "Current", "Credit"),
    ("2101", "Long-term Loan", "Liability", "Non-Current", "Credit"),

    # 자본 (3xxx) - Drawings는 차변 정상 잔액 (자본 차감)
    ("3001", "Owner's Capital", "Capital", "OwnersCapital", "Credit"),
    ("3002", "Retained Earnings", "Capital", "OwnersCapital", "Credit"),
    ("3003", "Drawings", "Capital", "OwnersCapital", "Debit"),

    # 수익 (4xxx)
    ("4001", "Sales Revenue", "Revenue", "Operating", "Credit"),
    ("4002", "Service Revenue", "Revenue", "Operating", "Credit"),
    ("4003", "Interest Income", "Revenue", "Non-Operating", "Credit"),

    # 비용 (5xxx)
    ("5001", "Cost of Goods Sold", "Expense", "Operating", "Debit"),
    ("5002", "Salary Expense", "Expense", "Operating", "Debit"),
    ("5003", "Rent Expense", "Expense", "Operating", "Debit"),
    ("5004", "Utilities Expense", "Expense", "Operating", "Debit"),
    ("5005", "Office Supplies", "Expense", "Operating", "Debit"),
    ("5006", "Advertising Expense", "Expense", "Operating", "Debit"),
    ("5007", "Depreciation Expense", "Expense", "Operating", "Debit"),
]
