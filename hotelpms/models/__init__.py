from hotelpms.models.models import (  # noqa: F401
    DEBIT_NORMAL_TYPES,
    Account,
    AccountType,
    Attendance,
    AttendanceStatus,
    Bill,
    BillItem,
    BillItemCategory,
    BillPaymentMethod,
    BillStatus,
    Budget,
    BudgetLine,
    BudgetStatus,
    CategoryType,
    Employee,
    EmployeeAllowance,
    EmployeeDeduction,
    EmployeeStatus,
    EmploymentType,
    Expense,
    ExpensePaymentMethod,
    ExpenseStatus,
    FinancialReport,
    Guest,
    HousekeepingStatus,
    HousekeepingTask,
    HousekeepingTaskType,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    PayFrequency,
    PayrollEntry,
    PayrollEntryStatus,
    PayrollPeriod,
    PayrollStatus,
    PerformanceGoal,
    PerformanceReview,
    Priority,
    ReportStatus,
    ReportType,
    Reservation,
    ReservationStatus,
    ReviewStatus,
    Room,
    RoomStatus,
    RoomType,
    TaxRecord,
    TaxStatus,
    TaxType,
    Transaction,
    TransactionCategory,
    TransactionEntry,
    TransactionSource,
    TransactionStatus,
    User,
    UserRole,
)
