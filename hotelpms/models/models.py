import enum

from sqlalchemy import JSON as JSONType
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from hotelpms.core.db import Base
from hotelpms.core.encrypted_type import EncryptedString

Money = Numeric(12, 2)


# --- Enums -------------------------------------------------------------------


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    RECEPTIONIST = "receptionist"
    HOUSEKEEPER = "housekeeper"
    ACCOUNTANT = "accountant"
    HR = "hr"


class RoomType(str, enum.Enum):
    STANDARD = "standard"
    DELUXE = "deluxe"
    SUITE = "suite"


class RoomStatus(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class ReservationStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"


class BillStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


class BillPaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"


class BillItemCategory(str, enum.Enum):
    ACCOMMODATION = "accommodation"
    FOOD = "food"
    BEVERAGE = "beverage"
    SERVICE = "service"
    OTHER = "other"


class HousekeepingTaskType(str, enum.Enum):
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    INSPECTION = "inspection"


class HousekeepingStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AccountType(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


# Accounts whose balance grows with debits
DEBIT_NORMAL_TYPES = {AccountType.ASSET, AccountType.EXPENSE}


class CategoryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"
    CANCELLED = "cancelled"


class TransactionSource(str, enum.Enum):
    MANUAL = "manual"
    BILLING = "billing"
    EXPENSE = "expense"
    PAYROLL = "payroll"


class ExpenseStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"


class ExpensePaymentMethod(str, enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CARD = "card"


class BudgetStatus(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    ACTIVE = "active"


class TaxType(str, enum.Enum):
    VAT = "vat"
    INCOME_TAX = "income_tax"
    WITHHOLDING_TAX = "withholding_tax"


class TaxStatus(str, enum.Enum):
    PENDING = "pending"
    FILED = "filed"
    PAID = "paid"
    OVERDUE = "overdue"


class ReportType(str, enum.Enum):
    PROFIT_LOSS = "profit_loss"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    TRIAL_BALANCE = "trial_balance"
    REVENUE_ANALYSIS = "revenue_analysis"
    EXPENSE_ANALYSIS = "expense_analysis"


class ReportStatus(str, enum.Enum):
    DRAFT = "draft"
    FINAL = "final"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    INTERN = "intern"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"
    ON_LEAVE = "on-leave"


class PayFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    BI_WEEKLY = "bi-weekly"
    WEEKLY = "weekly"
    ANNUALLY = "annually"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    ON_LEAVE = "on-leave"


class LeaveType(str, enum.Enum):
    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    EMERGENCY = "emergency"
    UNPAID = "unpaid"


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PayrollStatus(str, enum.Enum):
    DRAFT = "draft"
    PROCESSING = "processing"
    APPROVED = "approved"
    PAID = "paid"


class PayrollEntryStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class ReviewStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    APPROVED = "approved"


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# --- Staff -------------------------------------------------------------------


class User(Base, TimestampMixin):
    __tablename__ = "app_user"

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.RECEPTIONIST)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)


# --- Front office ------------------------------------------------------------


class Room(Base, TimestampMixin):
    __tablename__ = "room"

    id = Column(Integer, primary_key=True)
    number = Column(String, nullable=False, unique=True)
    floor = Column(Integer, nullable=False)
    room_type = Column(Enum(RoomType, name="room_type"), nullable=False)
    status = Column(
        Enum(RoomStatus, name="room_status"), nullable=False, default=RoomStatus.AVAILABLE
    )
    price = Column(Money, nullable=False)
    amenities = Column(JSONType, nullable=False, default=list)
    description = Column(Text, nullable=True)
    last_cleaned = Column(DateTime(timezone=True), nullable=True)

    reservations = relationship("Reservation", back_populates="room")
    housekeeping_tasks = relationship("HousekeepingTask", back_populates="room")


class Guest(Base, TimestampMixin):
    __tablename__ = "guest"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    phone = Column(String, nullable=False)
    address = Column(Text, nullable=True)
    id_number = Column(EncryptedString, nullable=True)  # ENCRYPTED
    nationality = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    special_requests = Column(Text, nullable=True)
    total_stays = Column(Integer, nullable=False, default=0)
    total_spent = Column(Money, nullable=False, default=0)

    reservations = relationship("Reservation", back_populates="guest")


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservation"

    id = Column(Integer, primary_key=True)
    guest_id = Column(Integer, ForeignKey("guest.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("room.id"), nullable=False, index=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(
        Enum(ReservationStatus, name="reservation_status"),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
    )
    total_amount = Column(Money, nullable=False, default=0)
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    special_requests = Column(Text, nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)
    created_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)

    guest = relationship("Guest", back_populates="reservations")
    room = relationship("Room", back_populates="reservations")
    bills = relationship("Bill", back_populates="reservation")


class Bill(Base, TimestampMixin):
    __tablename__ = "bill"

    id = Column(Integer, primary_key=True)
    bill_number = Column(String, nullable=True, unique=True)
    reservation_id = Column(Integer, ForeignKey("reservation.id"), nullable=False, index=True)
    guest_id = Column(Integer, ForeignKey("guest.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("room.id"), nullable=False)
    subtotal = Column(Money, nullable=False, default=0)
    tax = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False, default=0)
    status = Column(Enum(BillStatus, name="bill_status"), nullable=False, default=BillStatus.PENDING)
    payment_method = Column(Enum(BillPaymentMethod, name="bill_payment_method"), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    transaction_id = Column(Integer, ForeignKey("ledger_transaction.id"), nullable=True)

    reservation = relationship("Reservation", back_populates="bills")
    guest = relationship("Guest")
    room = relationship("Room")
    items = relationship(
        "BillItem", back_populates="bill", cascade="all, delete-orphan", order_by="BillItem.id"
    )


class BillItem(Base):
    __tablename__ = "bill_item"

    id = Column(Integer, primary_key=True)
    bill_id = Column(Integer, ForeignKey("bill.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Money, nullable=False)
    total = Column(Money, nullable=False)
    category = Column(
        Enum(BillItemCategory, name="bill_item_category"),
        nullable=False,
        default=BillItemCategory.OTHER,
    )

    bill = relationship("Bill", back_populates="items")


class HousekeepingTask(Base, TimestampMixin):
    __tablename__ = "housekeeping_task"

    id = Column(Integer, primary_key=True)
    room_id = Column(Integer, ForeignKey("room.id"), nullable=False, index=True)
    reservation_id = Column(Integer, ForeignKey("reservation.id"), nullable=True)
    task_type = Column(Enum(HousekeepingTaskType, name="housekeeping_task_type"), nullable=False)
    status = Column(
        Enum(HousekeepingStatus, name="housekeeping_status"),
        nullable=False,
        default=HousekeepingStatus.PENDING,
    )
    assigned_to = Column(String, nullable=True)
    priority = Column(Enum(Priority, name="priority"), nullable=False, default=Priority.MEDIUM)
    notes = Column(Text, nullable=True)
    estimated_duration = Column(Integer, nullable=False, default=30)  # minutes
    actual_duration = Column(Integer, nullable=True)  # minutes
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    room = relationship("Room", back_populates="housekeeping_tasks")


# --- Accounting --------------------------------------------------------------


class Account(Base, TimestampMixin):
    __tablename__ = "account"

    id = Column(Integer, primary_key=True)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String, nullable=False)
    account_type = Column(Enum(AccountType, name="account_type"), nullable=False)
    category = Column(String, nullable=True)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    parent_id = Column(Integer, ForeignKey("account.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)

    parent = relationship("Account", remote_side=[id])

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in DEBIT_NORMAL_TYPES


class TransactionCategory(Base, TimestampMixin):
    __tablename__ = "transaction_category"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    category_type = Column(Enum(CategoryType, name="category_type"), nullable=False)
    color = Column(String(9), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    parent_id = Column(Integer, ForeignKey("transaction_category.id"), nullable=True)


class Transaction(Base, TimestampMixin):
    __tablename__ = "ledger_transaction"

    id = Column(Integer, primary_key=True)
    transaction_number = Column(String, nullable=True, unique=True)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("transaction_category.id"), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(
        Enum(TransactionStatus, name="transaction_status"),
        nullable=False,
        default=TransactionStatus.DRAFT,
    )
    source = Column(
        Enum(TransactionSource, name="transaction_source"),
        nullable=False,
        default=TransactionSource.MANUAL,
    )
    created_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    posted_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    category = relationship("TransactionCategory")
    created_by = relationship("User")
    entries = relationship(
        "TransactionEntry",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionEntry.id",
    )


class TransactionEntry(Base):
    __tablename__ = "transaction_entry"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(
        Integer, ForeignKey("ledger_transaction.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id = Column(Integer, ForeignKey("account.id"), nullable=False, index=True)
    debit = Column(Numeric(14, 2), nullable=False, default=0)
    credit = Column(Numeric(14, 2), nullable=False, default=0)
    memo = Column(String, nullable=True)

    transaction = relationship("Transaction", back_populates="entries")
    account = relationship("Account")


class Expense(Base, TimestampMixin):
    __tablename__ = "expense"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    vendor = Column(String, nullable=False)
    description = Column(String, nullable=False)
    category_id = Column(Integer, ForeignKey("transaction_category.id"), nullable=False)
    amount = Column(Money, nullable=False)
    payment_method = Column(
        Enum(ExpensePaymentMethod, name="expense_payment_method"), nullable=False
    )
    reference = Column(String, nullable=True)
    receipt = Column(String, nullable=True)
    status = Column(
        Enum(ExpenseStatus, name="expense_status"), nullable=False, default=ExpenseStatus.PENDING
    )
    approved_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    account_id = Column(Integer, ForeignKey("account.id"), nullable=True)
    transaction_id = Column(Integer, ForeignKey("ledger_transaction.id"), nullable=True)

    category = relationship("TransactionCategory")
    account = relationship("Account")


class Budget(Base, TimestampMixin):
    __tablename__ = "budget"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=True)  # NULL = annual budget
    status = Column(Enum(BudgetStatus, name="budget_status"), nullable=False, default=BudgetStatus.DRAFT)
    total_budget = Column(Numeric(14, 2), nullable=False, default=0)
    total_actual = Column(Numeric(14, 2), nullable=False, default=0)
    variance = Column(Numeric(14, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    approved_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)

    lines = relationship(
        "BudgetLine", back_populates="budget", cascade="all, delete-orphan", order_by="BudgetLine.id"
    )


class BudgetLine(Base):
    __tablename__ = "budget_line"
    __table_args__ = (UniqueConstraint("budget_id", "category_id", name="uq_budget_line_category"),)

    id = Column(Integer, primary_key=True)
    budget_id = Column(Integer, ForeignKey("budget.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("transaction_category.id"), nullable=False)
    budgeted = Column(Numeric(14, 2), nullable=False, default=0)
    actual = Column(Numeric(14, 2), nullable=False, default=0)
    variance = Column(Numeric(14, 2), nullable=False, default=0)
    variance_pct = Column(Numeric(8, 2), nullable=False, default=0)

    budget = relationship("Budget", back_populates="lines")
    category = relationship("TransactionCategory")


class TaxRecord(Base, TimestampMixin):
    __tablename__ = "tax_record"

    id = Column(Integer, primary_key=True)
    tax_type = Column(Enum(TaxType, name="tax_type"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    taxable_amount = Column(Numeric(14, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False)
    tax_amount = Column(Numeric(14, 2), nullable=False)
    status = Column(Enum(TaxStatus, name="tax_status"), nullable=False, default=TaxStatus.PENDING)
    due_date = Column(Date, nullable=False)
    filed_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)


class FinancialReport(Base, TimestampMixin):
    __tablename__ = "financial_report"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    report_type = Column(Enum(ReportType, name="report_type"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    data = Column(JSONType, nullable=False, default=dict)
    summary = Column(JSONType, nullable=False, default=dict)
    status = Column(Enum(ReportStatus, name="report_status"), nullable=False, default=ReportStatus.FINAL)
    generated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    generated_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)

    generated_by = relationship("User")


# --- HR ----------------------------------------------------------------------


class Employee(Base, TimestampMixin):
    __tablename__ = "employee"

    id = Column(Integer, primary_key=True)
    employee_code = Column(String(20), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    # Personal
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    marital_status = Column(String(20), nullable=True)
    emergency_contact_name = Column(String, nullable=True)
    emergency_contact_phone = Column(String, nullable=True)
    # Employment
    department = Column(String, nullable=False)
    position = Column(String, nullable=False)
    hire_date = Column(Date, nullable=False)
    employment_type = Column(
        Enum(EmploymentType, name="employment_type"),
        nullable=False,
        default=EmploymentType.FULL_TIME,
    )
    status = Column(
        Enum(EmployeeStatus, name="employee_status"), nullable=False, default=EmployeeStatus.ACTIVE
    )
    work_location = Column(String, nullable=True)
    # Compensation
    base_salary = Column(Money, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    pay_frequency = Column(
        Enum(PayFrequency, name="pay_frequency"), nullable=False, default=PayFrequency.MONTHLY
    )
    bank_name = Column(String, nullable=True)
    bank_account_number = Column(EncryptedString, nullable=True)  # ENCRYPTED

    allowances = relationship(
        "EmployeeAllowance", back_populates="employee", cascade="all, delete-orphan"
    )
    deductions = relationship(
        "EmployeeDeduction", back_populates="employee", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class EmployeeAllowance(Base):
    __tablename__ = "employee_allowance"

    id = Column(Integer, primary_key=True)
    employee_id = Column(
        Integer, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    allowance_type = Column(String, nullable=False)  # housing, transport, meal ...
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    is_taxable = Column(Boolean, nullable=False, default=True)

    employee = relationship("Employee", back_populates="allowances")


class EmployeeDeduction(Base):
    __tablename__ = "employee_deduction"

    id = Column(Integer, primary_key=True)
    employee_id = Column(
        Integer, ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True
    )
    deduction_type = Column(String, nullable=False)  # tax, pension, insurance, loan ...
    name = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    is_percentage = Column(Boolean, nullable=False, default=False)

    employee = relationship("Employee", back_populates="deductions")


class Attendance(Base, TimestampMixin):
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),)

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employee.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    # Hotel wall-clock time
    clock_in = Column(DateTime, nullable=True)
    clock_out = Column(DateTime, nullable=True)
    break_minutes = Column(Integer, nullable=False, default=0)
    total_hours = Column(Numeric(5, 2), nullable=False, default=0)
    overtime_hours = Column(Numeric(5, 2), nullable=False, default=0)
    status = Column(
        Enum(AttendanceStatus, name="attendance_status"),
        nullable=False,
        default=AttendanceStatus.PRESENT,
    )
    notes = Column(Text, nullable=True)
    approved_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)

    employee = relationship("Employee")


class LeaveRequest(Base, TimestampMixin):
    __tablename__ = "leave_request"

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employee.id"), nullable=False, index=True)
    leave_type = Column(Enum(LeaveType, name="leave_type"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(LeaveStatus, name="leave_status"), nullable=False, default=LeaveStatus.PENDING)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    reviewed_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True)

    employee = relationship("Employee")


class PayrollPeriod(Base, TimestampMixin):
    __tablename__ = "payroll_period"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    pay_date = Column(Date, nullable=False)
    status = Column(
        Enum(PayrollStatus, name="payroll_status"), nullable=False, default=PayrollStatus.DRAFT
    )
    total_employees = Column(Integer, nullable=False, default=0)
    total_gross = Column(Numeric(14, 2), nullable=False, default=0)
    total_deductions = Column(Numeric(14, 2), nullable=False, default=0)
    total_net = Column(Numeric(14, 2), nullable=False, default=0)
    created_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    approved_by_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    transaction_id = Column(Integer, ForeignKey("ledger_transaction.id"), nullable=True)

    entries = relationship(
        "PayrollEntry", back_populates="period", cascade="all, delete-orphan", order_by="PayrollEntry.id"
    )


class PayrollEntry(Base, TimestampMixin):
    __tablename__ = "payroll_entry"
    __table_args__ = (UniqueConstraint("period_id", "employee_id", name="uq_payroll_entry_employee"),)

    id = Column(Integer, primary_key=True)
    period_id = Column(
        Integer, ForeignKey("payroll_period.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id = Column(Integer, ForeignKey("employee.id"), nullable=False)
    working_days = Column(Integer, nullable=False)
    actual_days = Column(Integer, nullable=False)
    overtime_hours = Column(Numeric(6, 2), nullable=False, default=0)
    base_pay = Column(Money, nullable=False)
    total_allowances = Column(Money, nullable=False, default=0)
    gross_pay = Column(Money, nullable=False)
    total_deductions = Column(Money, nullable=False, default=0)
    net_pay = Column(Money, nullable=False)
    # {"allowances": [{name, type, amount}], "deductions": [{name, type, amount}]}
    breakdown = Column(JSONType, nullable=False, default=dict)
    status = Column(
        Enum(PayrollEntryStatus, name="payroll_entry_status"),
        nullable=False,
        default=PayrollEntryStatus.PENDING,
    )
    payment_method = Column(String, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    period = relationship("PayrollPeriod", back_populates="entries")
    employee = relationship("Employee")


class PerformanceReview(Base, TimestampMixin):
    __tablename__ = "performance_review"

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employee.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    overall_rating = Column(Numeric(3, 2), nullable=True)
    strengths = Column(Text, nullable=True)
    areas_for_improvement = Column(Text, nullable=True)
    development_plan = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    status = Column(Enum(ReviewStatus, name="review_status"), nullable=False, default=ReviewStatus.DRAFT)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    employee = relationship("Employee")
    reviewer = relationship("User")
    goals = relationship(
        "PerformanceGoal", back_populates="review", cascade="all, delete-orphan", order_by="PerformanceGoal.id"
    )


class PerformanceGoal(Base):
    __tablename__ = "performance_goal"

    id = Column(Integer, primary_key=True)
    review_id = Column(
        Integer, ForeignKey("performance_review.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(Text, nullable=False)
    target_date = Column(Date, nullable=True)
    weight = Column(Numeric(5, 2), nullable=False, default=0)
    achievement = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    rating = Column(Integer, nullable=True)  # 1-5
    comments = Column(Text, nullable=True)

    review = relationship("PerformanceReview", back_populates="goals")
