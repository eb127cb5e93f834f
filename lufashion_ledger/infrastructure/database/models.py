"""SQLAlchemy ORM models for customers and their transactions"""

from sqlalchemy import Column, String, BigInteger, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CustomerRecord(Base):
    """Customer nota with its running balances"""

    __tablename__ = "customer"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False, index=True)
    phone = Column(Text, nullable=True)
    total_billed_cents = Column(BigInteger, nullable=False, default=0)
    pending_balance_cents = Column(BigInteger, nullable=False, default=0)
    settled_amount_cents = Column(BigInteger, nullable=False, default=0)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship(
        "TransactionRecord",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="TransactionRecord.occurred_at.desc()",
    )


class TransactionRecord(Base):
    """Charge or payment belonging to exactly one customer"""

    __tablename__ = "customer_transaction"

    id = Column(String(36), primary_key=True)
    customer_id = Column(String(36), ForeignKey("customer.id", ondelete="CASCADE"), nullable=False, index=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    kind = Column(Text, nullable=False)  # "charge" or "payment"
    description = Column(Text, nullable=True)

    customer = relationship("CustomerRecord", back_populates="transactions")
