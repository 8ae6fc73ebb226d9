import math
import random
import re
import unicodedata
from datetime import datetime
from typing import Iterable, List, Literal, Optional


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: column headers, or None to use the first row as headers.
        rows: list of rows, cells are converted with str().
        aligns: 'l', 'c' or 'r' per column, all left when omitted.

    Returns:
        str: the table, or "" when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    num_cols = len(headers)
    aligns = aligns or ["l"] * num_cols
    if len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines.extend("| " + " | ".join(str(cell) for cell in row) + " |" for row in rows)
    return "\n".join(lines)


def round_half_up(value: float, step: int = 1) -> int:
    """Round to the nearest multiple of step, halves going up (like JS Math.round)."""
    return int(math.floor(value / step + 0.5)) * step


def format_price(amount: float, currency: str = "FCFA") -> str:
    """50000 -> '50 000 FCFA'"""
    return f"{round_half_up(amount):,}".replace(",", " ") + f" {currency}"


def generate_reference(
    prefix: str, now: Optional[datetime] = None, rng: Optional[random.Random] = None
) -> str:
    """
    Human readable reference: PREFIX-<last 6 digits of epoch ms>-<4 random digits>.
    Not guaranteed unique.
    """
    now = now or datetime.now()
    rng = rng or random
    timestamp = str(int(now.timestamp() * 1000))[-6:]
    return f"{prefix}-{timestamp}-{rng.randint(0, 9999):04d}"


def generate_slug(name: str, existing: Iterable[str] = ()) -> str:
    """'Écouteurs Sans-fil!' -> 'ecouteurs-sans-fil', suffixed -1, -2... if taken."""
    base = unicodedata.normalize("NFD", name.lower())
    base = "".join(ch for ch in base if not unicodedata.combining(ch))
    base = re.sub(r"[^a-z0-9\s-]", "", base)
    base = re.sub(r"\s+", "-", base)
    base = re.sub(r"-+", "-", base).strip("-")

    taken = set(existing)
    slug, counter = base, 1
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def generate_sku_prefix(name: str, existing: Iterable[str] = ()) -> str:
    """First 3 alphanumerics upper-cased, at least 2 chars; 'SM1', 'SM2'... on clash."""
    base = re.sub(r"[^A-Z0-9]", "", name.upper())[:3]
    base = base.ljust(2, "X")

    taken = set(existing)
    prefix, counter = base, 1
    while prefix in taken:
        prefix = f"{base[:2]}{counter}"
        counter += 1
    return prefix
