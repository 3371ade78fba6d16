"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table
before create_all() runs, and other modules can import from app.models.
"""

from app.models.account import Account  # noqa: F401
from app.models.installment_purchase import InstallmentPurchase  # noqa: F401
from app.models.expense import Expense  # noqa: F401
from app.models.transfer import Transfer  # noqa: F401
