from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Literal, Optional

CENT = Decimal("0.01")


def to_int(val) -> Optional[int]:
    """int(val), or None when val is not an integer literal."""
    if isinstance(val, bool):
        return None
    if isinstance(val, float) and not val.is_integer():
        return None
    if isinstance(val, Decimal):
        if val != val.to_integral_value():
            return None
        return int(val)
    try:
        return int(str(val).strip()) if isinstance(val, str) else int(val)
    except (TypeError, ValueError):
        return None


def to_decimal(val) -> Optional[Decimal]:
    """
    Decimal(val), or None for anything that is not a finite number.
    Floats go through str() so 0.1 stays 0.1.
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, Decimal):
        result = val
    else:
        if isinstance(val, str):
            val = val.strip().replace(",", ".")
            if not val:
                return None
        try:
            result = Decimal(str(val))
        except (InvalidOperation, ValueError):
            return None
    if not result.is_finite():
        return None
    return result


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str) -> str:
    """`12.5` -> `12.50 DH`"""
    return f"{quantize_money(amount)} {currency}"


def format_plain_number(value: Decimal) -> str:
    """Drop trailing zeros: 10.50 -> 10.5, 100 -> 100."""
    normalized = value.normalize()
    return f"{normalized:f}"


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    # pipes inside a cell would split the column
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])
