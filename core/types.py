"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (운영 / 테스트)

    모드에 따라 사용하는 DB 파일이 달라진다.
    """

    PRODUCTION = "production"
    TEST = "test"


class PaymentMethod(str, Enum):
    """결제 방법

    값은 DB와 프론트엔드가 주고받는 한글 문자열 그대로 사용.
    """

    CASH = "현금"
    CARD = "카드"
    TRANSFER = "계좌이체"


class CashRecordType(str, Enum):
    """시재 기록 유형

    수입은 현금으로 늘어나고, 지출/통장입금은 현금이 줄어든다.
    """

    INCOME = "수입"
    EXPENSE = "지출"
    BANK_DEPOSIT = "통장입금"


class SourceType(str, Enum):
    """시재 기록의 원천 레코드 종류"""

    TRANSACTION = "transaction"
    EXPENSE = "expense"


class LedgerAction(str, Enum):
    """시재 기록에 적용된 변경 종류"""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


def is_cash(method: str | PaymentMethod | None) -> bool:
    """현금 결제 여부

    Args:
        method: 결제 방법 (Enum 또는 문자열, None 허용)

    Returns:
        현금이면 True
    """
    if method is None:
        return False
    return method == PaymentMethod.CASH.value
