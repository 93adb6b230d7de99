"""initial schema"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _money(name, nullable=False, scale=(12, 2), default="0"):
    if nullable:
        return sa.Column(name, sa.Numeric(*scale), nullable=True)
    if default is None:
        return sa.Column(name, sa.Numeric(*scale), nullable=False)
    return sa.Column(name, sa.Numeric(*scale), nullable=False, server_default=default)


def upgrade() -> None:
    user_role = sa.Enum(
        "ADMIN", "MANAGER", "RECEPTIONIST", "HOUSEKEEPER", "ACCOUNTANT", "HR", name="user_role"
    )
    room_type = sa.Enum("STANDARD", "DELUXE", "SUITE", name="room_type")
    room_status = sa.Enum("AVAILABLE", "OCCUPIED", "MAINTENANCE", "CLEANING", name="room_status")
    reservation_status = sa.Enum(
        "CONFIRMED", "CHECKED_IN", "CHECKED_OUT", "CANCELLED", name="reservation_status"
    )
    bill_status = sa.Enum("PENDING", "PAID", "CANCELLED", "OVERDUE", name="bill_status")
    bill_payment_method = sa.Enum(
        "CASH", "CARD", "BANK_TRANSFER", "MOBILE_MONEY", name="bill_payment_method"
    )
    bill_item_category = sa.Enum(
        "ACCOMMODATION", "FOOD", "BEVERAGE", "SERVICE", "OTHER", name="bill_item_category"
    )
    housekeeping_task_type = sa.Enum(
        "CLEANING", "MAINTENANCE", "INSPECTION", name="housekeeping_task_type"
    )
    housekeeping_status = sa.Enum("PENDING", "IN_PROGRESS", "COMPLETED", name="housekeeping_status")
    priority = sa.Enum("LOW", "MEDIUM", "HIGH", name="priority")
    account_type = sa.Enum("ASSET", "LIABILITY", "EQUITY", "REVENUE", "EXPENSE", name="account_type")
    category_type = sa.Enum("INCOME", "EXPENSE", name="category_type")
    transaction_status = sa.Enum("DRAFT", "POSTED", "CANCELLED", name="transaction_status")
    transaction_source = sa.Enum(
        "MANUAL", "BILLING", "EXPENSE", "PAYROLL", name="transaction_source"
    )
    expense_status = sa.Enum("PENDING", "APPROVED", "PAID", "REJECTED", name="expense_status")
    expense_payment_method = sa.Enum(
        "CASH", "BANK_TRANSFER", "CHEQUE", "CARD", name="expense_payment_method"
    )
    budget_status = sa.Enum("DRAFT", "APPROVED", "ACTIVE", name="budget_status")
    tax_type = sa.Enum("VAT", "INCOME_TAX", "WITHHOLDING_TAX", name="tax_type")
    tax_status = sa.Enum("PENDING", "FILED", "PAID", "OVERDUE", name="tax_status")
    report_type = sa.Enum(
        "PROFIT_LOSS",
        "BALANCE_SHEET",
        "CASH_FLOW",
        "TRIAL_BALANCE",
        "REVENUE_ANALYSIS",
        "EXPENSE_ANALYSIS",
        name="report_type",
    )
    report_status = sa.Enum("DRAFT", "FINAL", name="report_status")
    employment_type = sa.Enum(
        "FULL_TIME", "PART_TIME", "CONTRACT", "INTERN", name="employment_type"
    )
    employee_status = sa.Enum(
        "ACTIVE", "INACTIVE", "TERMINATED", "ON_LEAVE", name="employee_status"
    )
    pay_frequency = sa.Enum("MONTHLY", "BI_WEEKLY", "WEEKLY", "ANNUALLY", name="pay_frequency")
    attendance_status = sa.Enum(
        "PRESENT", "ABSENT", "LATE", "HALF_DAY", "ON_LEAVE", name="attendance_status"
    )
    leave_type = sa.Enum(
        "ANNUAL", "SICK", "MATERNITY", "PATERNITY", "EMERGENCY", "UNPAID", name="leave_type"
    )
    leave_status = sa.Enum("PENDING", "APPROVED", "REJECTED", "CANCELLED", name="leave_status")
    payroll_status = sa.Enum("DRAFT", "PROCESSING", "APPROVED", "PAID", name="payroll_status")
    payroll_entry_status = sa.Enum("PENDING", "PAID", name="payroll_entry_status")
    review_status = sa.Enum("DRAFT", "SUBMITTED", "REVIEWED", "APPROVED", name="review_status")

    op.create_table(
        "app_user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="RECEPTIONIST"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # --- Front office --------------------------------------------------------

    op.create_table(
        "room",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("number", sa.String(), nullable=False, unique=True),
        sa.Column("floor", sa.Integer(), nullable=False),
        sa.Column("room_type", room_type, nullable=False),
        sa.Column("status", room_status, nullable=False, server_default="AVAILABLE"),
        _money("price", default=None),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("last_cleaned", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "guest",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("id_number", sa.Text(), nullable=True),  # Fernet ciphertext
        sa.Column("nationality", sa.String(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("total_stays", sa.Integer(), nullable=False, server_default="0"),
        _money("total_spent"),
        *_timestamps(),
    )

    # --- Accounting ----------------------------------------------------------

    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(20), nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("account_type", account_type, nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        _money("balance", scale=(14, 2)),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("account.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "transaction_category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("category_type", category_type, nullable=False),
        sa.Column("color", sa.String(9), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "parent_id", sa.Integer(), sa.ForeignKey("transaction_category.id"), nullable=True
        ),
        *_timestamps(),
    )

    op.create_table(
        "ledger_transaction",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_number", sa.String(), nullable=True, unique=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column(
            "category_id", sa.Integer(), sa.ForeignKey("transaction_category.id"), nullable=True
        ),
        _money("total_amount", scale=(14, 2)),
        sa.Column("status", transaction_status, nullable=False, server_default="DRAFT"),
        sa.Column("source", transaction_source, nullable=False, server_default="MANUAL"),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("posted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_ledger_transaction_date", "ledger_transaction", ["date"])

    op.create_table(
        "transaction_entry",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("ledger_transaction.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("account.id"), nullable=False),
        _money("debit", scale=(14, 2)),
        _money("credit", scale=(14, 2)),
        sa.Column("memo", sa.String(), nullable=True),
    )
    op.create_index("ix_transaction_entry_transaction_id", "transaction_entry", ["transaction_id"])
    op.create_index("ix_transaction_entry_account_id", "transaction_entry", ["account_id"])

    op.create_table(
        "reservation",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guest_id", sa.Integer(), sa.ForeignKey("guest.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("room.id"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("status", reservation_status, nullable=False, server_default="CONFIRMED"),
        _money("total_amount"),
        sa.Column("adults", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("children", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_reservation_guest_id", "reservation", ["guest_id"])
    op.create_index("ix_reservation_room_id", "reservation", ["room_id"])

    op.create_table(
        "bill",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("bill_number", sa.String(), nullable=True, unique=True),
        sa.Column(
            "reservation_id", sa.Integer(), sa.ForeignKey("reservation.id"), nullable=False
        ),
        sa.Column("guest_id", sa.Integer(), sa.ForeignKey("guest.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("room.id"), nullable=False),
        _money("subtotal"),
        _money("tax"),
        _money("total"),
        sa.Column("status", bill_status, nullable=False, server_default="PENDING"),
        sa.Column("payment_method", bill_payment_method, nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "transaction_id", sa.Integer(), sa.ForeignKey("ledger_transaction.id"), nullable=True
        ),
        *_timestamps(),
    )
    op.create_index("ix_bill_reservation_id", "bill", ["reservation_id"])

    op.create_table(
        "bill_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "bill_id", sa.Integer(), sa.ForeignKey("bill.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        _money("unit_price", default=None),
        _money("total", default=None),
        sa.Column("category", bill_item_category, nullable=False, server_default="OTHER"),
    )
    op.create_index("ix_bill_item_bill_id", "bill_item", ["bill_id"])

    op.create_table(
        "housekeeping_task",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("room.id"), nullable=False),
        sa.Column(
            "reservation_id", sa.Integer(), sa.ForeignKey("reservation.id"), nullable=True
        ),
        sa.Column("task_type", housekeeping_task_type, nullable=False),
        sa.Column("status", housekeeping_status, nullable=False, server_default="PENDING"),
        sa.Column("assigned_to", sa.String(), nullable=True),
        sa.Column("priority", priority, nullable=False, server_default="MEDIUM"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("estimated_duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("actual_duration", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_housekeeping_task_room_id", "housekeeping_task", ["room_id"])

    op.create_table(
        "expense",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("vendor", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column(
            "category_id", sa.Integer(), sa.ForeignKey("transaction_category.id"), nullable=False
        ),
        _money("amount", default=None),
        sa.Column("payment_method", expense_payment_method, nullable=False),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column("receipt", sa.String(), nullable=True),
        sa.Column("status", expense_status, nullable=False, server_default="PENDING"),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("account.id"), nullable=True),
        sa.Column(
            "transaction_id", sa.Integer(), sa.ForeignKey("ledger_transaction.id"), nullable=True
        ),
        *_timestamps(),
    )
    op.create_index("ix_expense_date", "expense", ["date"])

    op.create_table(
        "budget",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("status", budget_status, nullable=False, server_default="DRAFT"),
        _money("total_budget", scale=(14, 2)),
        _money("total_actual", scale=(14, 2)),
        _money("variance", scale=(14, 2)),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "budget_line",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "budget_id",
            sa.Integer(),
            sa.ForeignKey("budget.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "category_id", sa.Integer(), sa.ForeignKey("transaction_category.id"), nullable=False
        ),
        _money("budgeted", scale=(14, 2)),
        _money("actual", scale=(14, 2)),
        _money("variance", scale=(14, 2)),
        _money("variance_pct", scale=(8, 2)),
        sa.UniqueConstraint("budget_id", "category_id", name="uq_budget_line_category"),
    )

    op.create_table(
        "tax_record",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tax_type", tax_type, nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        _money("taxable_amount", scale=(14, 2), default=None),
        _money("tax_rate", scale=(5, 2), default=None),
        _money("tax_amount", scale=(14, 2), default=None),
        sa.Column("status", tax_status, nullable=False, server_default="PENDING"),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("filed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "financial_report",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("report_type", report_type, nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("summary", sa.JSON(), nullable=False),
        sa.Column("status", report_status, nullable=False, server_default="FINAL"),
        sa.Column(
            "generated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("generated_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        *_timestamps(),
    )

    # --- HR ------------------------------------------------------------------

    op.create_table(
        "employee",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_code", sa.String(20), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("marital_status", sa.String(20), nullable=True),
        sa.Column("emergency_contact_name", sa.String(), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(), nullable=True),
        sa.Column("department", sa.String(), nullable=False),
        sa.Column("position", sa.String(), nullable=False),
        sa.Column("hire_date", sa.Date(), nullable=False),
        sa.Column("employment_type", employment_type, nullable=False, server_default="FULL_TIME"),
        sa.Column("status", employee_status, nullable=False, server_default="ACTIVE"),
        sa.Column("work_location", sa.String(), nullable=True),
        _money("base_salary"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("pay_frequency", pay_frequency, nullable=False, server_default="MONTHLY"),
        sa.Column("bank_name", sa.String(), nullable=True),
        sa.Column("bank_account_number", sa.Text(), nullable=True),  # Fernet ciphertext
        *_timestamps(),
    )

    op.create_table(
        "employee_allowance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employee.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("allowance_type", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        _money("amount", default=None),
        sa.Column("is_taxable", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_employee_allowance_employee_id", "employee_allowance", ["employee_id"])

    op.create_table(
        "employee_deduction",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("employee.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("deduction_type", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        _money("amount", default=None),
        sa.Column("is_percentage", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_employee_deduction_employee_id", "employee_deduction", ["employee_id"])

    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employee.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("clock_in", sa.DateTime(), nullable=True),
        sa.Column("clock_out", sa.DateTime(), nullable=True),
        sa.Column("break_minutes", sa.Integer(), nullable=False, server_default="0"),
        _money("total_hours", scale=(5, 2)),
        _money("overtime_hours", scale=(5, 2)),
        sa.Column("status", attendance_status, nullable=False, server_default="PRESENT"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
    )
    op.create_index("ix_attendance_employee_id", "attendance", ["employee_id"])
    op.create_index("ix_attendance_date", "attendance", ["date"])

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employee.id"), nullable=False),
        sa.Column("leave_type", leave_type, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("total_days", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", leave_status, nullable=False, server_default="PENDING"),
        sa.Column(
            "applied_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("reviewed_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_leave_request_employee_id", "leave_request", ["employee_id"])

    op.create_table(
        "payroll_period",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("pay_date", sa.Date(), nullable=False),
        sa.Column("status", payroll_status, nullable=False, server_default="DRAFT"),
        sa.Column("total_employees", sa.Integer(), nullable=False, server_default="0"),
        _money("total_gross", scale=(14, 2)),
        _money("total_deductions", scale=(14, 2)),
        _money("total_net", scale=(14, 2)),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "transaction_id", sa.Integer(), sa.ForeignKey("ledger_transaction.id"), nullable=True
        ),
        *_timestamps(),
    )

    op.create_table(
        "payroll_entry",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "period_id",
            sa.Integer(),
            sa.ForeignKey("payroll_period.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employee.id"), nullable=False),
        sa.Column("working_days", sa.Integer(), nullable=False),
        sa.Column("actual_days", sa.Integer(), nullable=False),
        _money("overtime_hours", scale=(6, 2)),
        _money("base_pay", default=None),
        _money("total_allowances"),
        _money("gross_pay", default=None),
        _money("total_deductions"),
        _money("net_pay", default=None),
        sa.Column("breakdown", sa.JSON(), nullable=False),
        sa.Column("status", payroll_entry_status, nullable=False, server_default="PENDING"),
        sa.Column("payment_method", sa.String(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("period_id", "employee_id", name="uq_payroll_entry_employee"),
    )
    op.create_index("ix_payroll_entry_period_id", "payroll_entry", ["period_id"])

    op.create_table(
        "performance_review",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employee.id"), nullable=False),
        sa.Column("reviewer_id", sa.Integer(), sa.ForeignKey("app_user.id"), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        _money("overall_rating", nullable=True, scale=(3, 2)),
        sa.Column("strengths", sa.Text(), nullable=True),
        sa.Column("areas_for_improvement", sa.Text(), nullable=True),
        sa.Column("development_plan", sa.Text(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("status", review_status, nullable=False, server_default="DRAFT"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_performance_review_employee_id", "performance_review", ["employee_id"])

    op.create_table(
        "performance_goal",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "review_id",
            sa.Integer(),
            sa.ForeignKey("performance_review.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("target_date", sa.Date(), nullable=True),
        _money("weight", scale=(5, 2)),
        _money("achievement", scale=(5, 2)),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
    )
    op.create_index("ix_performance_goal_review_id", "performance_goal", ["review_id"])


ENUM_NAMES = [
    "review_status",
    "payroll_entry_status",
    "payroll_status",
    "leave_status",
    "leave_type",
    "attendance_status",
    "pay_frequency",
    "employee_status",
    "employment_type",
    "report_status",
    "report_type",
    "tax_status",
    "tax_type",
    "budget_status",
    "expense_payment_method",
    "expense_status",
    "transaction_source",
    "transaction_status",
    "category_type",
    "account_type",
    "priority",
    "housekeeping_status",
    "housekeeping_task_type",
    "bill_item_category",
    "bill_payment_method",
    "bill_status",
    "reservation_status",
    "room_status",
    "room_type",
    "user_role",
]


def downgrade() -> None:
    op.drop_index("ix_performance_goal_review_id", table_name="performance_goal")
    op.drop_table("performance_goal")
    op.drop_index("ix_performance_review_employee_id", table_name="performance_review")
    op.drop_table("performance_review")
    op.drop_index("ix_payroll_entry_period_id", table_name="payroll_entry")
    op.drop_table("payroll_entry")
    op.drop_table("payroll_period")
    op.drop_index("ix_leave_request_employee_id", table_name="leave_request")
    op.drop_table("leave_request")
    op.drop_index("ix_attendance_date", table_name="attendance")
    op.drop_index("ix_attendance_employee_id", table_name="attendance")
    op.drop_table("attendance")
    op.drop_index("ix_employee_deduction_employee_id", table_name="employee_deduction")
    op.drop_table("employee_deduction")
    op.drop_index("ix_employee_allowance_employee_id", table_name="employee_allowance")
    op.drop_table("employee_allowance")
    op.drop_table("employee")

    op.drop_table("financial_report")
    op.drop_table("tax_record")
    op.drop_table("budget_line")
    op.drop_table("budget")
    op.drop_index("ix_expense_date", table_name="expense")
    op.drop_table("expense")

    op.drop_index("ix_housekeeping_task_room_id", table_name="housekeeping_task")
    op.drop_table("housekeeping_task")
    op.drop_index("ix_bill_item_bill_id", table_name="bill_item")
    op.drop_table("bill_item")
    op.drop_index("ix_bill_reservation_id", table_name="bill")
    op.drop_table("bill")
    op.drop_index("ix_reservation_room_id", table_name="reservation")
    op.drop_index("ix_reservation_guest_id", table_name="reservation")
    op.drop_table("reservation")

    op.drop_index("ix_transaction_entry_account_id", table_name="transaction_entry")
    op.drop_index("ix_transaction_entry_transaction_id", table_name="transaction_entry")
    op.drop_table("transaction_entry")
    op.drop_index("ix_ledger_transaction_date", table_name="ledger_transaction")
    op.drop_table("ledger_transaction")
    op.drop_table("transaction_category")
    op.drop_table("account")

    op.drop_table("guest")
    op.drop_table("room")
    op.drop_table("app_user")

    for name in ENUM_NAMES:
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
