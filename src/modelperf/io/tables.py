"""
Rendering of performance tables as rich, Markdown and LaTeX tables.
"""

import math
from pathlib import Path

import pandas as pd
from beartype import beartype
from beartype.typing import Any, Dict, List, Union
from returns.result import Failure, Result, Success
from rich.console import Console
from rich.table import Table

from modelperf.logging import configure_logging

__all__ = [
    "format_value",
    "generate_latex_table",
    "generate_markdown_table",
    "generate_rich_table",
    "print_table",
    "save_tables",
]

logger = configure_logging(__name__)

_IDENTITY_STYLES = {"Name": "cyan", "Model": "magenta", "Response": "green"}


def format_value(value: Any, digits: int = 4) -> str:
    """
    Examples:
        >>> format_value(0.123456), format_value(float("nan")), format_value("lm")
        ('0.1235', '', 'lm')
    """
    if isinstance(value, float):
        return "" if math.isnan(value) else f"{value:.{digits}f}"
    return str(value)


def _table_frame(table: Any) -> pd.DataFrame:
    return getattr(table, "table", table)


@beartype
def generate_rich_table(
    df: pd.DataFrame,
    title: str = "Model Comparison",
    digits: int = 4,
) -> Table:
    rich_table = Table(title=title)
    for column in df.columns:
        rich_table.add_column(
            str(column),
            style=_IDENTITY_STYLES.get(column),
            no_wrap=column in _IDENTITY_STYLES,
            justify="left" if column in _IDENTITY_STYLES else "right",
        )
    for _, row in df.iterrows():
        rich_table.add_row(*(format_value(value, digits) for value in row))
    return rich_table


@beartype
def generate_markdown_table(df: pd.DataFrame, digits: int = 4) -> str:
    """
    Examples:
        >>> df = pd.DataFrame({"Name": ["m1"], "Model": ["lm"], "R2": [0.5]})
        >>> print(generate_markdown_table(df, digits=2))
        | Name | Model | R2 |
        |:---|:---|---:|
        | m1 | lm | 0.50 |
    """
    header = "| " + " | ".join(str(c) for c in df.columns) + " |\n"
    alignment = (
        "|"
        + "|".join(":---" if c in _IDENTITY_STYLES else "---:" for c in df.columns)
        + "|\n"
    )
    body = ""
    for _, row in df.iterrows():
        body += "| " + " | ".join(format_value(v, digits) for v in row) + " |\n"
    return (header + alignment + body).rstrip("\n")


@beartype
def generate_latex_table(df: pd.DataFrame, digits: int = 4) -> str:
    formatted = df.map(lambda value: format_value(value, digits))
    column_format = "".join(
        "l" if c in _IDENTITY_STYLES else "r" for c in df.columns
    )
    return formatted.to_latex(index=False, column_format=column_format)


def print_table(table: Any, title: str = "Model Comparison") -> Table:
    """Print a performance or comparison table to the console."""
    rich_table = generate_rich_table(_table_frame(table), title=title)
    console = Console()
    console.print(rich_table)
    return rich_table


@beartype
def save_tables(
    table: Any,
    output_dir: Union[str, Path] = Path("reports"),
    stem: str = "performance",
) -> Result[Dict[str, Path], Exception]:
    """
    Save a performance or comparison table as CSV, Markdown and LaTeX.

    Returns:
        Result[Dict[str, Path], Exception]: paths by format, or the error.
    """
    try:
        df = _table_frame(table)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        paths = {
            "csv": output_dir / f"{stem}.csv",
            "markdown": output_dir / f"{stem}.md",
            "latex": output_dir / f"{stem}.tex",
        }
        df.to_csv(paths["csv"], index=False)
        paths["markdown"].write_text(generate_markdown_table(df) + "\n")
        paths["latex"].write_text(generate_latex_table(df))
        written: List[str] = [str(path) for path in paths.values()]
        logger.info("Saved tables:\n" + "\n".join(written))
        return Success(paths)
    except Exception as e:
        return Failure(e)
