"""Currency formatting for customer-facing messages"""


def format_brl(amount_cents: int) -> str:
    """
    Format cents as Brazilian reais.

    Example:
        123456 -> "R$ 1.234,56"
        -500 -> "-R$ 5,00"
    """
    sign = "-" if amount_cents < 0 else ""
    reais, cents = divmod(abs(amount_cents), 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {grouped},{cents:02d}"
