"""
원장 관리 CLI

사용법:
    python -m scripts.ledger_admin init
    python -m scripts.ledger_admin resequence
    python -m scripts.ledger_admin verify-balances
    python -m scripts.ledger_admin rebuild-balances
    python -m scripts.ledger_admin check-equation
    python -m scripts.ledger_admin --db data/other.db init

종료 코드:
    0: 정상
    1: 불일치 발견 (verify-balances, check-equation) 또는 원장 오류
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.errors import LedgerError
from core.ledger import (
    AccountRegistry,
    LedgerStore,
    ReportAggregator,
    TransactionNumberSequencer,
    init_ledger_schema,
)
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def cmd_init(db: SQLiteAdapter) -> int:
    """스키마 생성 + 기본 계정과목표"""
    await init_ledger_schema(db)
    created = await AccountRegistry(db).seed_default_accounts()
    print(f"스키마 초기화 완료 (기본 계정 {created}개 생성)")
    return 0


async def cmd_resequence(db: SQLiteAdapter) -> int:
    """거래번호 재부여"""
    count = await TransactionNumberSequencer(db).resequence()
    print(f"거래번호 재부여 완료: {count}건")
    return 0


async def cmd_verify_balances(db: SQLiteAdapter) -> int:
    """잔액 캐시 검증"""
    mismatches = await LedgerStore(db).verify_balances()
    if not mismatches:
        print("잔액 캐시 정상")
        return 0

    print(f"잔액 캐시 불일치: {len(mismatches)}개 계정")
    for m in mismatches:
        print(f"  {m.code}: cached={m.cached} computed={m.computed} diff={m.difference}")
    return 1


async def cmd_rebuild_balances(db: SQLiteAdapter) -> int:
    """잔액 캐시 재계산"""
    corrected = await LedgerStore(db).rebuild_balances()
    print(f"잔액 캐시 재계산 완료: {corrected}개 계정 수정")
    return 0


async def cmd_check_equation(db: SQLiteAdapter) -> int:
    """회계 등식 검증"""
    check = await ReportAggregator(db).check_accounting_equation()
    print(f"자산:       {check.total_assets:>15.2f}")
    print(f"부채:       {check.total_liabilities:>15.2f}")
    print(f"자본:       {check.total_capital:>15.2f}")
    print(f"당기순이익: {check.net_income:>15.2f}")
    print(f"차이:       {check.difference:>15.2f}")
    print("회계 등식 성립" if check.holds else "회계 등식 불일치")
    return 0 if check.holds else 1


COMMANDS = {
    "init": cmd_init,
    "resequence": cmd_resequence,
    "verify-balances": cmd_verify_balances,
    "rebuild-balances": cmd_rebuild_balances,
    "check-equation": cmd_check_equation,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="원장 관리 도구")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="원장 DB 경로 (기본: settings.yaml의 database.path)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init", help="스키마 생성 + 기본 계정과목표")
    subparsers.add_parser("resequence", help="거래번호를 생성 순서대로 재부여")
    subparsers.add_parser("verify-balances", help="잔액 캐시와 분개 합계 비교")
    subparsers.add_parser("rebuild-balances", help="잔액 캐시를 분개에서 재계산")
    subparsers.add_parser("check-equation", help="회계 등식 검증")
    return parser


async def run(command: str, db_path: Path) -> int:
    """명령 실행 (init 외에는 기존 스키마 필요)"""
    async with SQLiteAdapter(db_path) as db:
        if command != "init" and not await db.table_exists("ledger_transaction"):
            print(f"원장 스키마가 없습니다. 먼저 init을 실행하세요: {db_path}")
            return 1
        try:
            return await COMMANDS[command](db)
        except LedgerError as e:
            logger.error(f"{command} 실패: {e}", exc_info=e)
            print(f"오류: {e}")
            return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging("admin", settings.ledger)

    db_path = args.db or settings.db_path
    return asyncio.run(run(args.command, db_path))


if __name__ == "__main__":
    sys.exit(main())
