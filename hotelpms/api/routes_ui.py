from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from hotelpms.core.config import get_settings
from hotelpms.core.security import decode_access_token, get_request_token

router = APIRouter(prefix="/ui", tags=["ui"])
settings = get_settings()

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# slug -> (title, API collection path, response key, columns)
SECTIONS = {
    "rooms": ("Rooms", "/rooms", "rooms", ["number", "floor", "room_type", "status", "price"]),
    "guests": ("Guests", "/guests", "guests", ["name", "email", "phone", "total_stays", "total_spent"]),
    "reservations": (
        "Reservations",
        "/reservations",
        "reservations",
        ["id", "check_in_date", "check_out_date", "status", "total_amount"],
    ),
    "billing": ("Billing", "/bills", "bills", ["bill_number", "status", "subtotal", "tax", "total", "due_date"]),
    "housekeeping": (
        "Housekeeping",
        "/housekeeping",
        "tasks",
        ["id", "task_type", "status", "priority", "assigned_to"],
    ),
    "accounts": ("Chart of Accounts", "/accounts", "accounts", ["code", "name", "account_type", "balance"]),
    "transactions": (
        "Transactions",
        "/transactions",
        "transactions",
        ["transaction_number", "date", "description", "total_amount", "status"],
    ),
    "expenses": ("Expenses", "/expenses", "expenses", ["date", "vendor", "description", "amount", "status"]),
    "budgets": ("Budgets", "/budgets", "budgets", ["name", "year", "month", "total_budget", "total_actual", "status"]),
    "tax": ("Tax Records", "/tax-records", "tax_records", ["tax_type", "period_start", "period_end", "tax_amount", "status"]),
    "reports": ("Financial Reports", "/reports", "reports", ["name", "report_type", "period_start", "period_end"]),
    "employees": (
        "Employees",
        "/hr/employees",
        "employees",
        ["employee_code", "full_name", "department", "position", "status"],
    ),
    "attendance": ("Attendance", "/hr/attendance", "attendance", ["employee_name", "date", "status", "total_hours"]),
    "leave": ("Leave Requests", "/hr/leave", "leave_requests", ["employee_name", "leave_type", "start_date", "end_date", "status"]),
    "payroll": ("Payroll", "/hr/payroll/periods", "periods", ["name", "start_date", "end_date", "status", "total_net"]),
    "performance": ("Performance Reviews", "/hr/performance", "reviews", ["employee_name", "period_end", "overall_rating", "status"]),
}


def _render(request: Request, template_name: str, **context):
    return templates.TemplateResponse(
        request,
        template_name,
        {"app_name": settings.app_name, "sections": SECTIONS, **context},
    )


def _require_ui_auth(request: Request):
    token = get_request_token(request)
    if not token:
        return RedirectResponse(url="/ui/login")
    try:
        decode_access_token(token)
    except HTTPException:
        return RedirectResponse(url="/ui/login")
    return True


@router.get("/login")
def login_page(request: Request):
    return _render(request, "login.html")


@router.get("/dashboard")
def dashboard_page(request: Request, auth=Depends(_require_ui_auth)):
    if isinstance(auth, RedirectResponse):
        return auth
    return _render(request, "dashboard.html")


@router.get("/{section}")
def section_page(section: str, request: Request, auth=Depends(_require_ui_auth)):
    if isinstance(auth, RedirectResponse):
        return auth
    if section not in SECTIONS:
        raise HTTPException(status_code=404, detail="Page not found")
    title, api_path, key, columns = SECTIONS[section]
    return _render(
        request,
        "resource_list.html",
        section=section,
        title=title,
        api_path=api_path,
        key=key,
        columns=columns,
    )
