"""Third-party extensions discovered through the ``fintrack.plugins`` entry-point group.

A plugin module exposes ``register(hooks, app=..., report_app=...)`` and uses
the hooks to contribute statement parsers, CLI commands, schema migrations,
shared categories and merchant keywords. Keywords apply per import, through
``categorizer.keyword_table``.
"""

import importlib.metadata
import sqlite3
from typing import Callable

import typer

from fintrack.logging_setup import get_logger
from fintrack.models import ParserInfo
from fintrack.registry import registry

logger = get_logger("fintrack.plugins")

ENTRY_POINT_GROUP = "fintrack.plugins"


class PluginHooks:
    def __init__(self):
        self.parsers: list[ParserInfo] = []
        self.commands: list[tuple[typer.Typer, Callable]] = []
        self.migrations: list[Callable[[sqlite3.Connection], None]] = []
        self.categories: list[dict] = []
        self.keywords: list[tuple[str, str]] = []

    def add_parser(self, info: ParserInfo) -> None:
        self.parsers.append(info)

    def add_command(self, parent: typer.Typer, command: Callable) -> None:
        self.commands.append((parent, command))

    def add_migration(self, fn: Callable[[sqlite3.Connection], None]) -> None:
        self.migrations.append(fn)

    def add_categories(self, categories: list[dict]) -> None:
        """Each entry is ``{"name": ..., "category_type": "income" | "expense"}``."""
        self.categories.extend(categories)

    def add_keywords(self, pairs: list[tuple[str, str]]) -> None:
        """Merchant keyword -> category name, checked after the built-in table."""
        self.keywords.extend((keyword.lower(), name) for keyword, name in pairs)


def load_plugins(app: typer.Typer, report_app: typer.Typer) -> PluginHooks:
    hooks = PluginHooks()

    for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
        plugin_module = ep.load()
        if hasattr(plugin_module, "register"):
            plugin_module.register(hooks, app=app, report_app=report_app)
            logger.info("Loaded plugin %s", ep.name)

    register_hooks(hooks)
    return hooks


def register_hooks(hooks: PluginHooks) -> None:
    """Wire collected parsers and commands into the registry and the CLI."""
    for info in hooks.parsers:
        registry.register(info)

    for parent, command in hooks.commands:
        parent.command()(command)


def apply_migrations(conn: sqlite3.Connection, hooks: PluginHooks) -> None:
    for fn in hooks.migrations:
        fn(conn)
    conn.commit()


def seed_plugin_categories(conn: sqlite3.Connection, hooks: PluginHooks) -> int:
    """Add plugin categories as shared defaults. Names already present (any case) are skipped.

    Returns the number of categories inserted.
    """
    added = 0
    for cat in hooks.categories:
        if cat.get("category_type") not in ("income", "expense"):
            raise ValueError(f"Plugin category {cat.get('name')!r} has no valid category_type")
        existing = conn.execute(
            "SELECT 1 FROM categories WHERE user_id IS NULL AND lower(name) = lower(?)", (cat["name"],)
        ).fetchone()
        if existing is None:
            conn.execute(
                "INSERT INTO categories (name, category_type, user_id) VALUES (?, ?, NULL)",
                (cat["name"], cat["category_type"]),
            )
            added += 1
    conn.commit()
    return added
