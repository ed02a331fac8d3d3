def format_currency(amount: float) -> str:
    return f"RWF {format_currency_without_symbol(amount)}"


def format_currency_without_symbol(amount: float) -> str:
    # whole francs with thousands separators, fractions only when present
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"
