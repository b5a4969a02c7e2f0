"""
복식부기 (Double-Entry Bookkeeping) 원장

모든 자금 이동을 지갑별 분개(Entry)로 기록하고
지갑 잔액을 분개 합계와 항상 일치시키는 원장.

사용 예시:
```python
from core.ledger import TransactionEngine, TransferIntent

engine = TransactionEngine(db)
result = await engine.post_transaction(
    owner_id,
    TransferIntent(from_wallet_id, to_wallet_id, Decimal("40"), now_utc()),
)

# 잔액 불변식 점검 (정상이면 빈 목록)
drifts = await engine.wallet_ledger.find_drift(owner_id)
```
"""

from core.ledger.engine import TransactionEngine, build_intent
from core.ledger.poster import EntryPoster
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore, TransactionPage
from core.ledger.types import (
    Entry,
    ExpenseIntent,
    IncomeIntent,
    LedgerTransaction,
    Posting,
    PostResult,
    TransactionIntent,
    TransferIntent,
    Wallet,
)
from core.ledger.wallet_ledger import WalletLedger

__all__ = [
    # 핵심 클래스
    "TransactionEngine",
    "EntryPoster",
    "WalletLedger",
    "LedgerStore",
    "init_ledger_schema",
    "build_intent",
    # 타입
    "Entry",
    "Posting",
    "Wallet",
    "LedgerTransaction",
    "TransactionPage",
    "PostResult",
    "IncomeIntent",
    "ExpenseIntent",
    "TransferIntent",
    "TransactionIntent",
]
