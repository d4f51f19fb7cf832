"""Minor-unit money formatting"""


def format_minor_units(amount: int) -> str:
    """12345 -> "123.45" """
    sign = "-" if amount < 0 else ""
    whole, cents = divmod(abs(int(amount)), 100)
    return f"{sign}{whole}.{cents:02d}"
