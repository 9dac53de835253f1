"""
Deterministic synthetic CSV generator.

Used when the completion endpoint does not return usable CSV. Column names
are inferred from the free-text prompt, each column gets a value kind from
simple name heuristics, and values are drawn from the package LCG so the
same (prompt, rows, seed) always yields the same text.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from dataroom.math.prng import LCG
from dataroom.utils.general import distinct, parse_number, to_snake

DEFAULT_COLUMNS = [
    "user_id", "signup_date", "plan", "monthly_fee",
    "seats", "active_flag", "churn_date", "region"
]

MAX_COLUMN_NAME = 40

DATE_START = datetime(2021, 1, 1, tzinfo=timezone.utc)
DATE_END = datetime(2025, 9, 1, tzinfo=timezone.utc)

ENUM_POOLS = [
    ["free", "pro", "business"],
    ["A", "B"],
    ["ok", "warning", "fail"],
    ["americas", "emea", "apac"],
    ["student", "enterprise", "smb"],
]

NOUNS = [
    "alpha", "bravo", "charlie", "delta", "echo",
    "foxtrot", "golf", "hotel", "india", "juliet"
]

ENUM_BLOCK = re.compile(r'([a-zA-Z0-9_ ]+)\s*\{([^}]+)\}')

# Ordered: the first matching rule wins
KIND_RULES = [
    ('id', re.compile(r'^(.*_)?id$|_id$')),
    ('date', re.compile(r'date|timestamp', re.IGNORECASE)),
    ('bool', re.compile(r'flag|bool|active')),
    ('enum_guess', re.compile(r'plan|segment|variant|status|region|country|state|city|ticker|sector')),
    ('float', re.compile(r'price|fee|amount|revenue|subtotal|total|tax|cost|open|close|high|low|volume')),
    ('int', re.compile(r'count|seats|items|clicks|time|age')),
]


def parse_enum_list(prompt: str) -> Dict[str, List[str]]:
    """
    Find ``name{a, b, c}`` blocks in a prompt.

    Args:
        prompt: Free text

    Returns:
        Mapping of snake_case column name to its snake_case values
    """
    enums = {}
    for match in ENUM_BLOCK.finditer(prompt):
        key = to_snake(match.group(1))
        values = [v for v in (to_snake(x) for x in re.split(r'[,|]', match.group(2))) if v]
        if key and values:
            enums[key] = values
    return enums


def infer_columns(prompt: str) -> List[str]:
    """
    Infer column names from a prompt.

    Text after the first colon is split on commas, pipes and newlines;
    enum value blocks are removed first. Falls back to a SaaS-style schema
    when nothing usable is found.
    """
    _, sep, after = prompt.partition(':')
    raw = after if sep and after else prompt
    raw = re.sub(r'\{[^}]*\}', '', raw)

    cols = []
    for token in re.split(r'[,|\n]', raw):
        name = to_snake(token)
        if name and len(name) <= MAX_COLUMN_NAME:
            cols.append(name)

    cols = distinct(cols)
    return cols if cols else list(DEFAULT_COLUMNS)


def kind_for_column(col: str, enums: Dict[str, List[str]]) -> str:
    """Value kind for a column name."""
    if col in enums:
        return 'enum'
    for kind, pattern in KIND_RULES:
        if pattern.search(col):
            return kind
    return 'string'


def synth_value(kind: str, rng: LCG) -> str:
    """
    Draw one value of the given kind.

    A single generator draw is made per value.
    """
    r = rng.random()

    def rand_int(a: int, b: int) -> int:
        return a + int(r * (b - a + 1))

    if kind == 'id':
        return str(rand_int(100000, 999999))
    if kind == 'date':
        span = int((DATE_END - DATE_START).total_seconds() * 1000)
        ts = DATE_START + timedelta(milliseconds=int(r * span))
        return ts.date().isoformat()
    if kind == 'bool':
        return '1' if r < 0.8 else '0'
    if kind == 'int':
        return str(rand_int(0, 100))
    if kind == 'float':
        return repr(round(r * 1000, 2))
    if kind == 'enum_guess':
        pool = ENUM_POOLS[rand_int(0, len(ENUM_POOLS) - 1)]
        return pool[rand_int(0, len(pool) - 1)]
    if kind == 'string':
        return NOUNS[rand_int(0, len(NOUNS) - 1)]
    return ''


def quote_field(value: str) -> str:
    """Quote a CSV field only if it contains a quote, comma or newline."""
    if re.search(r'[",\n]', value):
        return '"' + value.replace('"', '""') + '"'
    return value


def _churn_date(signup: str, rng: LCG) -> Optional[str]:
    try:
        base = datetime.strptime(signup, '%Y-%m-%d')
    except ValueError:
        return None
    return (base + timedelta(days=int(rng.random() * 200))).date().isoformat()


def generate_rows(prompt: str, rows: int = 1000, seed: int = 42) -> List[List[str]]:
    """
    Generate a header plus ``rows`` data rows for a prompt.

    Args:
        prompt: Free-text dataset description
        rows: Number of data rows
        seed: Generator seed

    Returns:
        Header row followed by data rows
    """
    rng = LCG(seed)
    enums = parse_enum_list(prompt)
    cols = infer_columns(prompt)
    kinds = [kind_for_column(c, enums) for c in cols]

    idx = {name: i for i, name in enumerate(cols)}
    churn_rule = all(name in idx for name in ('active_flag', 'signup_date', 'churn_date'))

    out = [list(cols)]
    for _ in range(rows):
        values = []
        for col, kind in zip(cols, kinds):
            if kind == 'enum':
                choices = enums[col]
                values.append(choices[int(rng.random() * len(choices))])
            else:
                values.append(synth_value(kind, rng))

        # Churned accounts get a churn date after signup, active ones none
        if churn_rule:
            active = parse_number(values[idx['active_flag']])
            if not active:
                values[idx['churn_date']] = _churn_date(values[idx['signup_date']], rng) or ''
            else:
                values[idx['churn_date']] = ''

        out.append(values)

    return out


def generate_csv_fallback(prompt: str, rows: int = 1000, seed: int = 42) -> str:
    """
    Generate synthetic CSV text for a prompt.

    Args:
        prompt: Free-text dataset description
        rows: Number of data rows
        seed: Generator seed

    Returns:
        CSV text with a header line, newline-separated
    """
    return "\n".join(
        ",".join(quote_field(v) for v in row)
        for row in generate_rows(prompt, rows, seed)
    )
