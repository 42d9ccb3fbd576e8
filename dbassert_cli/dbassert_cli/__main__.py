"""Entry point for `python -m dbassert_cli` and the `dbassert` console script."""

from __future__ import annotations

from dbassert_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
