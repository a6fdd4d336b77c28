"""Typer based command line entry points for hypoflow."""

from __future__ import annotations

import typer

from hypoflow.services.sheets import sheets_app

app = typer.Typer(help="Utility CLI for hypoflow services.")
app.add_typer(sheets_app, name="sheets")


def main() -> None:
    app()


if __name__ == "__main__":
    app()
