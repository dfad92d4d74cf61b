# 📄 File: medplant/modules/payments/infrastructure/database/models.py
# 🧭 Purpose (Layman Explanation):
# Defines the two database tables for payments: the checkout orders, and what each user has
# bought (credits or a pro plan).
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy ORM models for payment_orders and user_subscriptions. Identifiers are plain strings
# (provider order ids, auth-backend user ids) so the schema runs on PostgreSQL and SQLite alike.
#
# 🔗 Dependencies:
# - SQLAlchemy ORM
# - medplant.shared.infrastructure.database.connection (shared Base)
#
# 🔄 Connected Modules / Calls From:
# - payment_repository_impl.py (order and entitlement repositories)
# - migrations/versions/001_payment_tables.py

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    func,
)

from medplant.shared.infrastructure.database.connection import Base


# =============================================================================
# PAYMENT ORDER MODEL
# =============================================================================

class PaymentOrderModel(Base):
    """
    Checkout order created through the payment provider.
    """

    __tablename__ = "payment_orders"

    order_id = Column(String(64), primary_key=True, nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    plan_id = Column(String(50), nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="created", index=True)
    receipt = Column(String(64), nullable=True)
    payment_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("status IN ('created', 'paid')", name="ck_payment_orders_status"),
        CheckConstraint("amount >= 0", name="ck_payment_orders_amount"),
    )

    def __repr__(self) -> str:
        return f"<PaymentOrderModel(order_id={self.order_id}, status={self.status})>"


# =============================================================================
# USER SUBSCRIPTION MODEL
# =============================================================================

class UserSubscriptionModel(Base):
    """
    Per-user entitlement: credit balance and active pro plan.
    """

    __tablename__ = "user_subscriptions"

    user_id = Column(String(64), primary_key=True, nullable=False)
    plan = Column(String(50), nullable=False, default="free")
    is_pro = Column(Boolean, nullable=False, default=False)
    daily_credits = Column(Integer, nullable=False, default=0)
    last_reset_date = Column(Date, nullable=True)
    subscription_id = Column(String(64), nullable=True)
    plan_start_date = Column(DateTime(timezone=True), nullable=True)
    plan_end_date = Column(DateTime(timezone=True), nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("daily_credits >= 0", name="ck_user_subscriptions_credits"),
    )

    def __repr__(self) -> str:
        return f"<UserSubscriptionModel(user_id={self.user_id}, plan={self.plan})>"


__all__ = ["PaymentOrderModel", "UserSubscriptionModel"]
