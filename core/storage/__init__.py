"""
스토리지 모듈

지갑, 카테고리, 거래 템플릿, 대출 저장소 제공
"""

from core.storage.category_store import CATEGORY_PRESETS, Category, CategoryPreset, CategoryStore
from core.storage.loan_store import Loan, LoanPayment, LoanStore
from core.storage.template_store import TemplateStore, TransactionTemplate
from core.storage.wallet_store import WalletPage, WalletStore

__all__ = [
    "CATEGORY_PRESETS",
    "Category",
    "CategoryPreset",
    "CategoryStore",
    "Loan",
    "LoanPayment",
    "LoanStore",
    "TemplateStore",
    "TransactionTemplate",
    "WalletPage",
    "WalletStore",
]
