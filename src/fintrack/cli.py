import shutil
import sqlite3
from datetime import date
from functools import partial
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from fintrack.db import get_connection, init_db
from fintrack.logging_setup import configure_logging
from fintrack.models import User
from fintrack.settings import DEFAULTS, get_data_dir, get_db_path, get_rate_ttl_seconds, load_settings, save_settings
from fintrack.store import get_user_by_name
from fintrack.plugins import load_plugins, apply_migrations, seed_plugin_categories

app = typer.Typer(help="fintrack - personal finance tracker with statement import.", invoke_without_command=True)

report_app = typer.Typer(help="Generate reports.")
app.add_typer(report_app, name="report")

console = Console()

_plugin_hooks = load_plugins(app, report_app)


@app.callback()
def main():
    """fintrack - personal finance tracker with statement import."""
    configure_logging(load_settings()["log_level"])


def _connect() -> sqlite3.Connection:
    return get_connection(get_db_path())


def _require_user(conn: sqlite3.Connection, name: str) -> User:
    user = get_user_by_name(conn, name)
    if user is None:
        conn.close()
        console.print(f"[red]Unknown user: {name}[/red]")
        raise typer.Exit(1)
    return user


@app.command()
def init(
    data_dir: str = typer.Option(None, "--data-dir", help="Path for fintrack data (default: ~/Documents/fintrack)"),
):
    """Choose a data directory and initialize the database."""
    settings = load_settings()

    if data_dir:
        settings["data_dir"] = str(Path(data_dir).expanduser().resolve())
    elif settings == DEFAULTS:
        # First run - prompt for data dir
        chosen = typer.prompt("Data directory", default=settings["data_dir"])
        settings["data_dir"] = str(Path(chosen).expanduser().resolve())

    save_settings(settings)

    resolved = Path(settings["data_dir"])
    resolved.mkdir(parents=True, exist_ok=True)
    (resolved / "imports").mkdir(exist_ok=True)

    conn = get_connection(resolved / "fintrack.db")
    init_db(conn)
    apply_migrations(conn, _plugin_hooks)
    seed_plugin_categories(conn, _plugin_hooks)
    conn.close()

    typer.echo(f"Initialized fintrack at {resolved}")


# --- Currency ---

from fintrack.currency import RateCache, fetch_usd_rates

_rate_cache: RateCache | None = None


def get_rate_cache() -> RateCache:
    """The process-wide rate cache, built from settings on first use."""
    global _rate_cache
    if _rate_cache is None:
        settings = load_settings()
        _rate_cache = RateCache(
            fetch=partial(fetch_usd_rates, settings["rate_source_url"]),
            ttl_seconds=get_rate_ttl_seconds(),
        )
    return _rate_cache


@app.command()
def convert(
    amount: str = typer.Argument(help="Amount to convert"),
    from_code: str = typer.Argument(help="Source currency, e.g. EUR"),
    to_code: str = typer.Argument(help="Target currency, e.g. USD"),
):
    """Convert an amount between currencies using the cached USD rate table."""
    result = get_rate_cache().convert(amount, from_code, to_code)
    try:
        typer.echo(f"{amount} {from_code.upper()} = {float(result):,.2f} {to_code.upper()}")
    except ValueError:
        console.print(f"[red]Not a number: {amount}[/red]")
        raise typer.Exit(1)


# --- Users ---

from fintrack.store import create_user, list_users, update_user_currency

users_app = typer.Typer(help="Manage users.")
app.add_typer(users_app, name="users")


@users_app.command("add")
def users_add(
    name: str = typer.Argument(help="User name"),
    currency: str = typer.Option("USD", help="Preferred currency, e.g. EUR"),
):
    """Add a user."""
    conn = _connect()
    try:
        create_user(conn, name, currency)
    except sqlite3.IntegrityError:
        conn.close()
        console.print(f"[red]User already exists: {name}[/red]")
        raise typer.Exit(1)
    conn.close()
    typer.echo(f"Added user: {name} ({currency.upper()})")


@users_app.command("list")
def users_list():
    """List users."""
    conn = _connect()
    users = list_users(conn)
    conn.close()

    table = Table(title="Users")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Currency")
    for u in users:
        table.add_row(str(u.id), u.name, u.currency)
    console.print(table)


@users_app.command("currency")
def users_currency(
    name: str = typer.Argument(help="User name"),
    currency: str = typer.Argument(help="New preferred currency, e.g. EUR"),
):
    """Change a user's preferred currency."""
    conn = _connect()
    u = _require_user(conn, name)
    try:
        update_user_currency(conn, u.id, currency)
    except ValueError as exc:
        conn.close()
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    conn.close()
    typer.echo(f"{u.name} now uses {currency.strip().upper()}")


# --- Categories ---

from fintrack.store import create_category, find_categories_for_user, find_category_by_name

categories_app = typer.Typer(help="Manage categories.")
app.add_typer(categories_app, name="categories")


@categories_app.command("add")
def categories_add(
    name: str = typer.Argument(help="Category name"),
    user: str = typer.Option(help="User name"),
    type: str = typer.Option("expense", help="Category type: income or expense"),
):
    """Add a custom category for a user."""
    conn = _connect()
    u = _require_user(conn, user)
    try:
        create_category(conn, u.id, name, type)
    except ValueError as exc:
        conn.close()
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    conn.close()
    typer.echo(f"Added category: {name} ({type})")


@categories_app.command("list")
def categories_list(user: str = typer.Option(help="User name")):
    """List a user's categories, shared defaults included."""
    conn = _connect()
    u = _require_user(conn, user)
    cats = find_categories_for_user(conn, u.id)
    conn.close()

    table = Table(title="Categories")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Scope", style="dim")
    for c in cats:
        table.add_row(str(c.id), c.name, c.category_type, "default" if c.user_id is None else "custom")
    console.print(table)


# --- Transactions ---

from fintrack.budgets import check_budget
from fintrack.dates import parse_date
from fintrack.store import (
    create_transaction, delete_transaction, get_transaction, list_transactions, update_transaction,
)


@app.command()
def add(
    amount: float = typer.Argument(help="Amount, always positive"),
    description: str = typer.Argument(help="Description"),
    user: str = typer.Option(help="User name"),
    type: str = typer.Option("expense", help="income or expense"),
    on: str = typer.Option(None, "--date", help="Date (default: today)"),
    category: str = typer.Option(None, help="Category name"),
    currency: str = typer.Option(None, help="Currency (default: the user's)"),
):
    """Record a single transaction."""
    conn = _connect()
    u = _require_user(conn, user)

    txn_date = parse_date(on) if on else date.today().isoformat()
    if txn_date is None:
        conn.close()
        console.print(f"[red]Unrecognized date: {on}[/red]")
        raise typer.Exit(1)

    category_id = None
    if category:
        cat = find_category_by_name(conn, u.id, category)
        if cat is None:
            conn.close()
            console.print(f"[red]Unknown category: {category}[/red]")
            raise typer.Exit(1)
        category_id = cat.id

    try:
        create_transaction(
            conn, u.id, date=txn_date, description=description, amount=amount, type=type,
            currency=currency or u.currency, category_id=category_id,
        )
    except ValueError as exc:
        conn.close()
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    typer.echo(f"Added {type}: {description} {abs(amount):,.2f}")

    if type == "expense" and category_id is not None:
        _warn_over_budget(conn, u, category_id, cat.name, txn_date)
    conn.close()


def _warn_over_budget(conn: sqlite3.Connection, u: User, category_id: int, category_name: str, txn_date: str):
    """Print a warning when this month's spending in the category is over its budget."""
    try:
        on_date = date.fromisoformat(txn_date)
    except ValueError:
        return
    rates = get_rate_cache()
    status = check_budget(conn, u.id, category_id, on_date, rates)
    if status is not None and status.exceeded:
        limit = float(rates.convert(status.limit, "USD", u.currency))
        spent = float(rates.convert(status.spent, "USD", u.currency))
        console.print(
            f"[yellow]Budget exceeded for {category_name}: "
            f"limit {limit:,.2f} {u.currency}, spent {spent:,.2f} {u.currency}[/yellow]"
        )


@app.command()
def transactions(
    user: str = typer.Option(help="User name"),
    limit: int = typer.Option(50, help="Number of rows to show"),
):
    """List recent transactions, converted into the user's currency."""
    conn = _connect()
    u = _require_user(conn, user)
    rows = list_transactions(conn, u.id)[:limit]
    conn.close()

    rates = get_rate_cache()
    table = Table(title=f"Transactions ({u.name})")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column(u.currency, justify="right")
    for t in rows:
        color = "red" if t.type == "expense" else "green"
        converted = float(rates.convert(t.amount, t.currency, u.currency))
        table.add_row(
            str(t.id), t.date, t.description, t.category_name or "",
            f"[{color}]{t.amount:,.2f} {t.currency}[/{color}]",
            f"[{color}]{converted:,.2f}[/{color}]",
        )
    console.print(table)


@app.command()
def edit(
    txn_id: int = typer.Argument(help="Transaction ID"),
    user: str = typer.Option(help="User name"),
    amount: float = typer.Option(None, help="New amount"),
    description: str = typer.Option(None, help="New description"),
    type: str = typer.Option(None, help="income or expense"),
    on: str = typer.Option(None, "--date", help="New date"),
    category: str = typer.Option(None, help="New category name"),
    currency: str = typer.Option(None, help="New currency"),
):
    """Change fields of a recorded transaction."""
    conn = _connect()
    u = _require_user(conn, user)

    changes = {}
    if amount is not None:
        changes["amount"] = amount
    if description is not None:
        changes["description"] = description
    if type is not None:
        changes["type"] = type
    if currency is not None:
        changes["currency"] = currency
    if on is not None:
        changes["date"] = parse_date(on)
        if changes["date"] is None:
            conn.close()
            console.print(f"[red]Unrecognized date: {on}[/red]")
            raise typer.Exit(1)
    if category is not None:
        cat = find_category_by_name(conn, u.id, category)
        if cat is None:
            conn.close()
            console.print(f"[red]Unknown category: {category}[/red]")
            raise typer.Exit(1)
        changes["category_id"] = cat.id

    try:
        found = update_transaction(conn, u.id, txn_id, **changes)
    except ValueError as exc:
        conn.close()
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    if not found:
        conn.close()
        console.print(f"[red]No transaction {txn_id} for {u.name}[/red]")
        raise typer.Exit(1)
    typer.echo(f"Updated transaction {txn_id}")

    txn = get_transaction(conn, u.id, txn_id)
    if txn.type == "expense" and txn.category_id is not None:
        _warn_over_budget(conn, u, txn.category_id, txn.category_name, txn.date)
    conn.close()


@app.command()
def delete(
    txn_id: int = typer.Argument(help="Transaction ID"),
    user: str = typer.Option(help="User name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation"),
):
    """Delete a recorded transaction."""
    conn = _connect()
    u = _require_user(conn, user)
    txn = get_transaction(conn, u.id, txn_id)
    if txn is None:
        conn.close()
        console.print(f"[red]No transaction {txn_id} for {u.name}[/red]")
        raise typer.Exit(1)

    if not yes and not typer.confirm(f"Delete {txn.date} {txn.description} {txn.amount:,.2f} {txn.currency}?"):
        conn.close()
        typer.echo("Nothing deleted.")
        return
    delete_transaction(conn, u.id, txn_id)
    conn.close()
    typer.echo(f"Deleted transaction {txn_id}")


# --- Import ---

from fintrack.errors import ImportFailure
from fintrack.categorizer import keyword_table
from fintrack.importer import confirm_import, run_import
from fintrack.reviewer import run_import_review, show_preview
from fintrack.store import list_imports


@app.command("import")
def import_cmd(
    file: Path = typer.Argument(help="Path to a CSV, XLSX or PDF statement"),
    user: str = typer.Option(help="User name to import for"),
    mime: str = typer.Option(None, help="Mime type, overrides the file extension"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Import every new row without review"),
):
    """Import a bank statement, review the staged rows and save the selected ones."""
    conn = _connect()
    u = _require_user(conn, user)

    keywords = keyword_table(_plugin_hooks.keywords)
    try:
        preview = run_import(conn, u.id, file, mime_hint=mime, keywords=keywords)
    except ImportFailure as exc:
        conn.close()
        console.print(f"[red]Import failed: {exc}[/red]")
        raise typer.Exit(1)

    categories = find_categories_for_user(conn, u.id)
    if yes:
        show_preview(preview, categories)
        proceed = bool(preview.unique)
    else:
        proceed = run_import_review(preview, categories)

    if not proceed:
        conn.close()
        typer.echo(f"0 imported, {len(preview.duplicates)} skipped (duplicates)")
        return

    try:
        result = confirm_import(conn, u.id, preview.unique, filename=preview.filename, checksum=preview.checksum)
    except ImportFailure as exc:
        console.print(f"[red]Import failed: {exc}[/red]")
        raise typer.Exit(1)
    finally:
        conn.close()

    typer.echo(f"{result.imported_count} imported, {len(preview.duplicates)} skipped (duplicates)")
    if result.failed_count:
        console.print(f"[yellow]{result.failed_count} row(s) could not be saved, see the log.[/yellow]")

    # Archive the statement
    if result.imported_count:
        dest = get_data_dir() / "imports" / file.name
        if not dest.exists():
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file, dest)


@app.command()
def imports(user: str = typer.Option(help="User name")):
    """List past statement imports."""
    conn = _connect()
    u = _require_user(conn, user)
    records = list_imports(conn, u.id)
    conn.close()

    table = Table(title="Imports")
    table.add_column("ID", style="dim")
    table.add_column("File")
    table.add_column("Imported")
    table.add_column("Rows", justify="right")
    table.add_column("Range")
    for r in records:
        table.add_row(
            str(r.id), r.filename, r.import_date or "", str(r.record_count or 0),
            f"{r.date_range_start} - {r.date_range_end}",
        )
    console.print(table)


# --- Anomalies ---

from fintrack.anomalies import detect_anomalies, dismiss_anomaly


@app.command()
def anomalies(
    user: str = typer.Option(help="User name"),
    dismiss: int = typer.Option(None, help="Transaction ID to stop flagging"),
):
    """Show unusual spending, or dismiss a flagged transaction."""
    conn = _connect()
    u = _require_user(conn, user)

    if dismiss is not None:
        found = dismiss_anomaly(conn, u.id, dismiss)
        conn.close()
        if not found:
            console.print(f"[red]No transaction {dismiss} for {u.name}[/red]")
            raise typer.Exit(1)
        typer.echo(f"Dismissed transaction {dismiss}")
        return

    flags = detect_anomalies(conn, u.id)
    conn.close()

    if not flags:
        typer.echo("No anomalies found.")
        return

    table = Table(title=f"Anomalies ({len(flags)})")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Severity")
    table.add_column("Reason")
    for f in flags:
        t = f.transaction
        color = "red" if f.severity == "high" else "yellow"
        table.add_row(
            str(t.id), t.date, t.description, f"{t.amount:,.2f} {t.currency}",
            f"[{color}]{f.severity}[/{color}]", f.reason,
        )
    console.print(table)


# --- Budgets ---

from fintrack.budgets import delete_budget, list_budgets, set_budget

budgets_app = typer.Typer(help="Manage monthly budgets.")
app.add_typer(budgets_app, name="budgets")


@budgets_app.command("set")
def budgets_set(
    category: str = typer.Argument(help="Expense category name"),
    amount: float = typer.Argument(help="Monthly limit in USD"),
    user: str = typer.Option(help="User name"),
    description: str = typer.Option(None, help="Note"),
):
    """Set the monthly budget for a category."""
    conn = _connect()
    u = _require_user(conn, user)
    cat = find_category_by_name(conn, u.id, category)
    if cat is None or cat.category_type != "expense":
        conn.close()
        console.print(f"[red]Unknown expense category: {category}[/red]")
        raise typer.Exit(1)
    set_budget(conn, u.id, cat.id, amount, description)
    conn.close()
    typer.echo(f"Budget for {cat.name}: {amount:,.2f} USD")


@budgets_app.command("list")
def budgets_list(user: str = typer.Option(help="User name")):
    """Show budgets with this month's spending."""
    conn = _connect()
    u = _require_user(conn, user)
    names = {c.id: c.name for c in find_categories_for_user(conn, u.id)}
    rates = get_rate_cache()
    today = date.today()

    table = Table(title=f"Budgets - {today:%B %Y}")
    table.add_column("Category")
    table.add_column(f"Limit ({u.currency})", justify="right")
    table.add_column(f"Spent ({u.currency})", justify="right")
    table.add_column("Status")
    for b in list_budgets(conn, u.id):
        status = check_budget(conn, u.id, b.category_id, today, rates)
        limit = float(rates.convert(status.limit, "USD", u.currency))
        spent = float(rates.convert(status.spent, "USD", u.currency))
        label = "[red]over[/red]" if status.exceeded else "[green]ok[/green]"
        table.add_row(names.get(b.category_id, str(b.category_id)), f"{limit:,.2f}", f"{spent:,.2f}", label)
    conn.close()
    console.print(table)


@budgets_app.command("delete")
def budgets_delete(
    category: str = typer.Argument(help="Expense category name"),
    user: str = typer.Option(help="User name"),
):
    """Remove the monthly budget for a category."""
    conn = _connect()
    u = _require_user(conn, user)
    cat = find_category_by_name(conn, u.id, category)
    found = cat is not None and delete_budget(conn, u.id, cat.id)
    conn.close()
    if not found:
        console.print(f"[red]No budget for {category}[/red]")
        raise typer.Exit(1)
    typer.echo(f"Removed budget for {cat.name}")


# --- Savings ---

from fintrack.savings import (
    add_plan, add_saving, delete_plan, delete_saving, get_overview, set_primary, toggle_plan, update_saving,
)

savings_app = typer.Typer(help="Track savings sources and saving goals.")
app.add_typer(savings_app, name="savings")
plans_app = typer.Typer(help="Monthly saving goals.")
savings_app.add_typer(plans_app, name="plans")


def _fail(conn: sqlite3.Connection, message: str):
    conn.close()
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@savings_app.command("list")
def savings_list(user: str = typer.Option(help="User name")):
    """Show savings sources and goals. A deficit is taken out of the primary source."""
    conn = _connect()
    u = _require_user(conn, user)
    overview = get_overview(conn, u.id, get_rate_cache(), u.currency)
    conn.close()

    table = Table(title=f"Savings ({u.currency})")
    table.add_column("ID", style="dim")
    table.add_column("Source")
    table.add_column("Amount", justify="right")
    table.add_column("Note")
    for s in overview.savings:
        source = f"{s.source} [bold](primary)[/bold]" if s.is_primary else s.source
        table.add_row(str(s.id), source, f"{s.amount:,.2f}", s.description or "")
    console.print(table)
    if overview.deficit:
        console.print(f"[red]Deficit {overview.deficit:,.2f} deducted from the primary source[/red]")
    console.print(f"Total savings: [bold]{overview.total:,.2f}[/bold] (before deficit {overview.raw_total:,.2f})")

    if overview.plans:
        plans = Table(title="Saving goals")
        plans.add_column("ID", style="dim")
        plans.add_column("Goal")
        plans.add_column("Target", justify="right")
        plans.add_column("Month")
        plans.add_column("Done")
        for p in overview.plans:
            done = "[green]yes[/green]" if p.is_completed else "no"
            plans.add_row(str(p.id), p.goal_name, f"{p.target_amount:,.2f}", p.month or "", done)
        console.print(plans)


@savings_app.command("add")
def savings_add(
    source: str = typer.Argument(help="Where the money is, e.g. 'HDFC FD'"),
    amount: str = typer.Argument(help="Current balance"),
    user: str = typer.Option(help="User name"),
    description: str = typer.Option(None, help="Note"),
    primary: bool = typer.Option(False, "--primary", help="Deduct deficits from this source"),
):
    """Add a savings source."""
    conn = _connect()
    u = _require_user(conn, user)
    try:
        saving_id = add_saving(conn, u.id, source, amount, description, is_primary=primary)
    except ValueError as exc:
        _fail(conn, str(exc))
    conn.close()
    typer.echo(f"Added savings source {saving_id}: {source}")


@savings_app.command("update")
def savings_update(
    saving_id: int = typer.Argument(help="Savings source ID"),
    source: str = typer.Argument(help="Source name"),
    amount: str = typer.Argument(help="Current balance"),
    user: str = typer.Option(help="User name"),
    description: str = typer.Option(None, help="Note"),
    primary: bool = typer.Option(False, "--primary", help="Deduct deficits from this source"),
):
    """Replace a savings source's name, balance and note."""
    conn = _connect()
    u = _require_user(conn, user)
    try:
        found = update_saving(conn, u.id, saving_id, source, amount, description, is_primary=primary)
    except ValueError as exc:
        _fail(conn, str(exc))
    if not found:
        _fail(conn, f"No savings source {saving_id} for {u.name}")
    conn.close()
    typer.echo(f"Updated savings source {saving_id}")


@savings_app.command("primary")
def savings_primary(
    saving_id: int = typer.Argument(help="Savings source ID"),
    user: str = typer.Option(help="User name"),
):
    """Make a source the primary one."""
    conn = _connect()
    u = _require_user(conn, user)
    if not set_primary(conn, u.id, saving_id):
        _fail(conn, f"No savings source {saving_id} for {u.name}")
    conn.close()
    typer.echo(f"Savings source {saving_id} is now primary")


@savings_app.command("delete")
def savings_delete(
    saving_id: int = typer.Argument(help="Savings source ID"),
    user: str = typer.Option(help="User name"),
):
    """Remove a savings source."""
    conn = _connect()
    u = _require_user(conn, user)
    if not delete_saving(conn, u.id, saving_id):
        _fail(conn, f"No savings source {saving_id} for {u.name}")
    conn.close()
    typer.echo(f"Deleted savings source {saving_id}")


@plans_app.command("add")
def plans_add(
    goal: str = typer.Argument(help="Goal name"),
    target: str = typer.Argument(help="Target amount"),
    user: str = typer.Option(help="User name"),
    month: str = typer.Option(None, help="Month: YYYY-MM"),
):
    """Add a saving goal."""
    conn = _connect()
    u = _require_user(conn, user)
    try:
        plan_id = add_plan(conn, u.id, goal, target, month)
    except ValueError as exc:
        _fail(conn, str(exc))
    conn.close()
    typer.echo(f"Added saving goal {plan_id}: {goal}")


@plans_app.command("toggle")
def plans_toggle(
    plan_id: int = typer.Argument(help="Goal ID"),
    user: str = typer.Option(help="User name"),
):
    """Mark a goal done, or open again."""
    conn = _connect()
    u = _require_user(conn, user)
    completed = toggle_plan(conn, u.id, plan_id)
    if completed is None:
        _fail(conn, f"No saving goal {plan_id} for {u.name}")
    conn.close()
    typer.echo(f"Saving goal {plan_id} {'completed' if completed else 'reopened'}")


@plans_app.command("delete")
def plans_delete(
    plan_id: int = typer.Argument(help="Goal ID"),
    user: str = typer.Option(help="User name"),
):
    """Remove a saving goal."""
    conn = _connect()
    u = _require_user(conn, user)
    if not delete_plan(conn, u.id, plan_id):
        _fail(conn, f"No saving goal {plan_id} for {u.name}")
    conn.close()
    typer.echo(f"Deleted saving goal {plan_id}")


# --- Reports ---

from fintrack.reports import get_monthly_trend, get_summary


@report_app.command("summary")
def report_summary(
    user: str = typer.Option(help="User name"),
    year: int = typer.Option(None, help="Year filter: YYYY"),
):
    """Income and expenses by category for a year."""
    conn = _connect()
    u = _require_user(conn, user)
    data = get_summary(conn, u.id, year=year)
    conn.close()

    table = Table(title=f"Summary {data['year']}")
    table.add_column("Category")
    table.add_column("Amount", justify="right")

    if data["income"]:
        table.add_row("[bold green]INCOME[/bold green]", "")
        for item in data["income"]:
            table.add_row(f"  {item['name']}", f"{item['total']:,.2f}")
        table.add_row("[bold]Total Income[/bold]", f"[bold]{data['total_income']:,.2f}[/bold]")
        table.add_row("", "")

    if data["expenses"]:
        table.add_row("[bold red]EXPENSES[/bold red]", "")
        for item in data["expenses"]:
            table.add_row(f"  {item['name']}", f"{item['total']:,.2f}")
        table.add_row("[bold]Total Expenses[/bold]", f"[bold]{data['total_expense']:,.2f}[/bold]")
        table.add_row("", "")

    color = "green" if data["net"] >= 0 else "red"
    table.add_row(f"[bold {color}]NET[/bold {color}]", f"[bold {color}]{data['net']:,.2f}[/bold {color}]")
    console.print(table)


@report_app.command("trend")
def report_trend(
    user: str = typer.Option(help="User name"),
    months: int = typer.Option(6, help="Number of months"),
):
    """Monthly income and expenses."""
    conn = _connect()
    u = _require_user(conn, user)
    trend = get_monthly_trend(conn, u.id, months=months)
    conn.close()

    table = Table(title="Monthly Trend")
    table.add_column("Month")
    table.add_column("Income", justify="right", style="green")
    table.add_column("Expense", justify="right", style="red")
    table.add_column("Net", justify="right")
    for m in trend:
        net_color = "green" if m["net"] >= 0 else "red"
        table.add_row(
            m["month"], f"{m['income']:,.2f}", f"{m['expense']:,.2f}",
            f"[{net_color}]{m['net']:,.2f}[/{net_color}]",
        )
    console.print(table)


if __name__ == "__main__":
    app()
