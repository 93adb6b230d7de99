def document_number(prefix: str, pk: int, width: int = 6) -> str:
    """Sequential human-facing numbers: TXN-000001, BILL-000042."""
    return f"{prefix}-{pk:0{width}d}"


def employee_code(seq: int) -> str:
    return f"EMP{seq:03d}"
