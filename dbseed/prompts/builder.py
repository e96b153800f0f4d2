from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from dbseed.prompts.contracts import GeneratorPromptInput, Style
from dbseed.schema.types import Column, Table

MAX_REFERENCE_VALUES_SHOWN = 20

STYLE_HINTS = {
    Style.REALISTIC: """STYLE HINTS for realistic data:
- Names should sound like real people from different cultures
- Emails should match the person's name (sarah.m@gmail.com)
- Dates spread across the last 2 years
- Prices realistic for the domain (not 0.01 or 99999.99)
- Text fields contain coherent readable sentences""",
    Style.EDGE_CASES: """STYLE HINTS for edge case data:
- Include NULL for about 20% of nullable fields
- Include strings near their maximum length
- Include special characters: apostrophes, hyphens, accents
- Include numbers at boundaries: 0, 1, max value
- Include dates at month and year boundaries""",
    Style.MINIMAL: """STYLE HINTS for minimal data:
- Short simple values only
- ASCII characters only, no special chars
- No punctuation in text fields
- Simple short strings like "name1", "name2\"""",
}

OUTPUT_RULES = """OUTPUT RULES - FOLLOW EXACTLY:
- Your response must start with [ and end with ]
- Return ONLY the JSON array, absolutely nothing else
- No words before the array, no words after the array
- No markdown, no backticks, no code fences
- Each element must be a JSON object with {} braces
- All keys must be column names in double quotes
- Skip auto-generated integer primary key columns"""


def _shown(values: Sequence[Any]) -> str:
    return ", ".join(str(v) for v in list(values)[:MAX_REFERENCE_VALUES_SHOWN])


def format_column(col: Column) -> str:
    """One bullet line: name, raw type and rule tags."""
    line = f"  - {col.name}: {col.raw_type or col.type.value}"
    if col.not_null or col.primary_key:
        line += " [REQUIRED]"
    if col.unique or col.primary_key:
        line += " [MUST BE UNIQUE]"
    if col.foreign_key is not None:
        line += f" [FK -> {col.foreign_key}]"
    if col.allowed_values:
        line += f" [ONLY ALLOWED VALUES: {', '.join(col.allowed_values)}]"
    return line


def format_rules(
    table: Table, reference_values: Mapping[str, Sequence[Any]]
) -> str:
    rules: List[str] = []
    for col in table.non_auto_columns():
        if col.not_null or col.primary_key:
            rules.append(f"  - {col.name} MUST NOT be null or empty")
        if col.unique or col.primary_key:
            rules.append(f"  - {col.name} MUST be unique - no two rows can have the same value")
        if col.allowed_values:
            rules.append(
                f"  - {col.name} MUST be exactly one of: {' | '.join(col.allowed_values)}"
            )
        if col.foreign_key is not None:
            values = reference_values.get(col.name) or []
            if values:
                rules.append(f"  - {col.name} MUST be one of these exact values: [{_shown(values)}]")
            else:
                rules.append(
                    f"  - {col.name} is a foreign key to {col.foreign_key} - "
                    "use small integers like 1, 2, 3"
                )
    if not rules:
        return "  No special constraints"
    return "\n".join(rules)


def format_reference_values(reference_values: Mapping[str, Sequence[Any]]) -> str:
    lines = [
        f"  {col}: [{_shown(values)}]"
        for col, values in sorted(reference_values.items())
        if values
    ]
    if not lines:
        return "  This table has no known foreign key values"
    return "\n".join(lines)


def build_prompt(
    table: Table,
    rows: int,
    style: "Style | str" = Style.REALISTIC,
    reference_values: Optional[Dict[str, List[Any]]] = None,
) -> str:
    """
    Render the row-generation prompt for one table.

    `reference_values` maps a foreign-key column name to values that already
    exist in the referenced table; the model is told to use only those.
    """
    if rows <= 0:
        raise ValueError("rows must be positive")
    req = GeneratorPromptInput(
        table=table.name,
        rows=rows,
        style=Style.parse(style),
        reference_values=dict(reference_values or {}),
    )
    columns = "\n".join(format_column(c) for c in table.non_auto_columns())
    example_keys = list(table.column_names())[:2] or ["name"]
    example = ", ".join(f'"{k}": "..."' for k in example_keys)

    return f"""You are a database seed data generator.
Generate exactly {req.rows} rows of data for this table.

TABLE NAME: {req.table}

COLUMNS (what each column needs):
{columns}

RULES YOU MUST FOLLOW STRICTLY:
{format_rules(table, req.reference_values)}

DATA STYLE: {req.style.value}
{STYLE_HINTS[req.style]}

FOREIGN KEY VALUES (ONLY use these exact values for FK columns):
{format_reference_values(req.reference_values)}

{OUTPUT_RULES}

START YOUR RESPONSE WITH [ AND NOTHING ELSE.

EXAMPLE of correct output format:
[
  {{{example}}},
  {{{example}}}
]

Generate the JSON array for table {req.table} now:"""
