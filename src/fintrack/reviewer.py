from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.rule import Rule
from rich.table import Table

from fintrack.importer import total_amount
from fintrack.models import Category, ImportPreview, StagedTransaction

console = Console()


def parse_row_numbers(raw: str, count: int) -> set[int]:
    """Parse '1,3,5-7' into zero-based indexes, ignoring anything out of range."""
    indexes: set[int] = set()
    for part in raw.replace(" ", "").split(","):
        if not part:
            continue
        try:
            if "-" in part:
                lo, hi = part.split("-", 1)
                numbers = range(int(lo), int(hi) + 1)
            else:
                numbers = [int(part)]
        except ValueError:
            continue
        indexes.update(n - 1 for n in numbers if 1 <= n <= count)
    return indexes


def apply_exclusions(rows: list[StagedTransaction], excluded: set[int]) -> None:
    for i, row in enumerate(rows):
        row.active = i not in excluded


def set_row_category(rows: list[StagedTransaction], index: int, category: Category | None) -> None:
    rows[index].category_id = category.id if category else None


def _staged_table(title: str, rows: list[StagedTransaction], names: dict[int, str], numbered: bool) -> Table:
    table = Table(title=title)
    if numbered:
        table.add_column("#", style="dim")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Category")
    for i, r in enumerate(rows, 1):
        color = "red" if r.type == "expense" else "green"
        sign = "-" if r.type == "expense" else ""
        cells = [
            r.date,
            r.description,
            f"[{color}]{sign}{r.amount:,.2f} {r.currency}[/{color}]",
            names.get(r.category_id) or "[dim]Uncategorized[/dim]",
        ]
        if numbered:
            cells.insert(0, str(i) if r.active else f"[strike]{i}[/strike]")
        table.add_row(*cells)
    return table


def show_preview(preview: ImportPreview, categories: list[Category]) -> None:
    names = {c.id: c.name for c in categories}
    if preview.previously_imported:
        console.print("[yellow]This file has been imported before.[/yellow]")
    if preview.duplicates:
        console.print(_staged_table(
            f"Already recorded ({len(preview.duplicates)}) - will be skipped",
            preview.duplicates, names, numbered=False,
        ))
    console.print(_staged_table(f"New transactions ({len(preview.unique)})", preview.unique, names, numbered=True))


def run_import_review(preview: ImportPreview, categories: list[Category]) -> bool:
    """Let the user exclude rows and fix categories. Returns False if the import was cancelled."""
    rows = preview.unique
    show_preview(preview, categories)
    if not rows:
        console.print("[green]Nothing new to import.[/green]")
        return False

    excluded = Prompt.ask("Rows to exclude (e.g. 2,5-7, Enter for none)", default="")
    apply_exclusions(rows, parse_row_numbers(excluded, len(rows)))

    while Confirm.ask("Change a category?", default=False):
        choice = Prompt.ask("Row #")
        picked = parse_row_numbers(choice, len(rows))
        if len(picked) != 1:
            console.print("[red]Invalid row, try again.[/red]")
            continue
        index = picked.pop()

        cat_table = Table(title="Categories", show_lines=False)
        cat_table.add_column("#", style="dim")
        cat_table.add_column("Name")
        cat_table.add_column("Type", style="dim")
        for i, cat in enumerate(categories, 1):
            cat_table.add_row(str(i), cat.name, cat.category_type)
        console.print(cat_table)

        cat_choice = Prompt.ask("Category # (or [bold]n[/bold]one)")
        if cat_choice.lower() == "n":
            set_row_category(rows, index, None)
            continue
        try:
            set_row_category(rows, index, categories[int(cat_choice) - 1])
        except (ValueError, IndexError):
            console.print("[red]Invalid choice, unchanged.[/red]")

    console.print(Rule())
    console.print(_staged_table("To import", [r for r in rows if r.active], {c.id: c.name for c in categories}, numbered=False))
    console.print(
        f"Income [green]{total_amount(rows, 'income'):,.2f}[/green]  "
        f"Expenses [red]{total_amount(rows, 'expense'):,.2f}[/red]"
    )
    return Confirm.ask(f"Import {sum(1 for r in rows if r.active)} transaction(s)?", default=True)
