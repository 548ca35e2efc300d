from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, create_engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from fintrack.config import DATABASE_URL

Base = declarative_base()


def make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url)
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise each thread gets its own empty database
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


def make_session_factory(url: str):
    """Engine + session factory for ``url`` with all tables created."""
    eng = make_engine(url)
    Base.metadata.create_all(bind=eng)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=eng)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# --- Models ---

class AccountRow(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)


class IncomeRow(Base):
    __tablename__ = "incomes"

    id = Column(String(36), primary_key=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    source = Column(String, nullable=False)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)


class ExpenseRow(Base):
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String, nullable=False)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)


class InvestmentRow(Base):
    __tablename__ = "investments"

    id = Column(String(36), primary_key=True)
    date = Column(Date, nullable=False)                  # start date
    description = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)      # principal
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    certificate_name = Column(String, nullable=False)
    initial_rate = Column(Numeric(7, 4), nullable=False)
    term_years = Column(Integer, nullable=False)

    # Packed year * 12 + (month - 1) of the last claimed period, NULL until the first claim
    last_claimed_key = Column(Integer, nullable=True)

    step_downs = relationship(
        "StepDownRow",
        back_populates="investment",
        cascade="all, delete-orphan",
        order_by="StepDownRow.year_trigger",
        lazy="selectin",
    )


class StepDownRow(Base):
    __tablename__ = "investment_step_downs"

    id = Column(Integer, primary_key=True)
    investment_id = Column(String(36), ForeignKey("investments.id"), nullable=False, index=True)
    year_trigger = Column(Integer, nullable=False)
    new_rate = Column(Numeric(7, 4), nullable=False)

    investment = relationship("InvestmentRow", back_populates="step_downs")


# --- Init DB ---
def init_db():
    Base.metadata.create_all(bind=engine)
