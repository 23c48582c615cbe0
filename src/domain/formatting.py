from __future__ import annotations


def format_brl(amount: float, decimals: int = 2) -> str:
    """pt-BR currency text, e.g. 2000 -> 'R$ 2.000,00'."""
    text = f"{abs(amount):,.{decimals}f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if round(amount, decimals) < 0 else ""
    return f"{sign}R$ {text}"
