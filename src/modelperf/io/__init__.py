from modelperf.io.tables import (
    generate_latex_table,
    generate_markdown_table,
    generate_rich_table,
    print_table,
    save_tables,
)

__all__ = [
    "generate_latex_table",
    "generate_markdown_table",
    "generate_rich_table",
    "print_table",
    "save_tables",
]
