def format_token_amount(amount: int, decimals: int) -> str:
    """Render base units as a decimal string without going through floats.

    The fractional part is padded to `decimals` digits and trailing zeros are
    trimmed; a zero fraction drops the decimal point entirely.

        format_token_amount(1500000000000000000, 18) -> "1.5"
        format_token_amount(10**18, 18)              -> "1"
        format_token_amount(0, 6)                    -> "0"
    """
    if amount < 0:
        raise ValueError(f"Token amount must not be negative: {amount}")
    if decimals < 0:
        raise ValueError(f"Decimals must not be negative: {decimals}")
    if decimals == 0:
        return str(amount)

    integer, fraction = divmod(amount, 10 ** decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    if not fraction_str:
        return str(integer)
    return f"{integer}.{fraction_str}"
