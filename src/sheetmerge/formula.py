"""Formula reference rewriting for cells moved to a new row."""

from __future__ import annotations

import logging
import re

from openpyxl.formula.tokenizer import Token, Tokenizer, TokenizerError

logger = logging.getLogger(__name__)

# [$]COL[$]ROW, not embedded in a longer identifier or a function call.
_CELL_REF_RE = re.compile(
    r"(?<![A-Za-z0-9_.])(\$?)([A-Za-z]{1,3})(\$?)(\d+)(?![A-Za-z0-9_(])"
)
# Double-quoted string literals and single-quoted sheet names.
_QUOTED_RE = re.compile(r"(\"(?:[^\"]|\"\")*\"|'(?:[^']|'')*')")


def _shift_match(match: re.Match[str], row_offset: int) -> str:
    col_lock, col, row_lock, row = match.groups()
    if row_lock:
        return match.group(0)
    return f"{col_lock}{col}{row_lock}{int(row) + row_offset}"


def shift_reference(ref: str, row_offset: int) -> str:
    """Shift every relative row in a range operand such as ``Sheet1!A1:$B$2``.

    The sheet qualifier (everything up to the last ``!``) is left alone.
    """
    qualifier, bang, address = ref.rpartition("!")
    shifted = _CELL_REF_RE.sub(lambda m: _shift_match(m, row_offset), address)
    return f"{qualifier}{bang}{shifted}"


def _shift_outside_literals(formula: str, row_offset: int) -> str:
    """Shift references by pattern alone, skipping quoted strings and sheet names."""
    parts = _QUOTED_RE.split(formula)
    for idx in range(0, len(parts), 2):
        parts[idx] = _CELL_REF_RE.sub(lambda m: _shift_match(m, row_offset), parts[idx])
    return "".join(parts)


def rewrite_formula(formula: str, row_offset: int, col_offset: int = 0) -> str:
    """Return *formula* with its relative row references moved by *row_offset*.

    References with an absolute row (``A$1``) are kept as-is. Column letters are
    never translated, so *col_offset* is accepted for call-site symmetry only.
    Function names, string literals and sheet names pass through untouched.
    No check is made that a shifted reference still points inside the sheet.
    """
    del col_offset
    if not formula.startswith("=") or row_offset == 0:
        return formula
    try:
        tokens = Tokenizer(formula).items
    except TokenizerError:
        logger.warning("Could not tokenize formula %r; copied unchanged", formula)
        return formula

    # Walk the original text token by token so spacing survives exactly.
    # Whitespace tokens are skipped: the gaps between other tokens carry it,
    # and line breaks may be reported out of order.
    out: list[str] = []
    cursor = 1
    for token in tokens:
        if token.type == Token.WSPACE:
            continue
        start = formula.find(token.value, cursor)
        if start < 0:
            logger.debug("Lost token %r in %r; shifting by pattern", token.value, formula)
            return _shift_outside_literals(formula, row_offset)
        end = start + len(token.value)
        if token.type == Token.OPERAND and token.subtype == Token.RANGE:
            out.append(formula[cursor:start])
            out.append(shift_reference(token.value, row_offset))
        else:
            out.append(formula[cursor:end])
        cursor = end
    out.append(formula[cursor:])
    return "=" + "".join(out)
