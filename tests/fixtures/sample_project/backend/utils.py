"""Helpers shared by the backend services."""


def validate_email(email: str) -> bool:
    """Cheap syntactic email check."""
    return "@" in email and "." in email.split("@")[1]


def calculate_total(items: list, tax_rate: float = 0.1) -> float:
    """Total of *items* including tax."""
    subtotal = sum(items)
    return subtotal + _tax(subtotal, tax_rate)


def _tax(amount: float, rate: float) -> float:
    return amount * rate
