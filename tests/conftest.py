import logging
from pathlib import Path
from typing import Optional

import pytest

from reconflow.models.record import NormalizedRecord


def make_record(
    reference: str,
    amount: Optional[float] = None,
    status: Optional[str] = None,
    **extra,
) -> NormalizedRecord:
    return NormalizedRecord(reference=reference, amount=amount, status=status, extra=extra)


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def write_csv(tmp_path: Path):
    """Write CSV content to a file under tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def internal_csv(write_csv) -> Path:
    return write_csv(
        "internal.csv",
        "Transaction Reference,Amount,Status,Customer\n"
        "TX-1,100.00,Paid,alice\n"
        "TX-2,50.00,paid,bob\n"
        "TX-3,75.50,pending,carol\n"
        "TX-4,20.00,paid,dave\n",
    )


@pytest.fixture
def provider_csv(write_csv) -> Path:
    return write_csv(
        "provider.csv",
        "transaction_reference,amount,status,fee\n"
        "TX-1,100.005,PAID,0.30\n"
        "TX-2,55.00,paid,0.15\n"
        "TX-3,75.50,failed,0.20\n"
        "TX-9,10.00,paid,0.05\n",
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI runs attach handlers to captured streams; drop them after each test."""
    yield
    logger = logging.getLogger("reconflow")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
