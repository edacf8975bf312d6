from __future__ import annotations

import argparse
import asyncio
import csv
from pathlib import Path

from spinwheel.core.config import get_settings
from spinwheel.core.logging import configure_logging
from spinwheel.db.session import SessionLocal, dispose_engine
from spinwheel.wheel.constants import TOKEN_ISSUE_MAX_QUANTITY, TOKEN_ISSUE_MIN_QUANTITY
from spinwheel.wheel.tokens import TokenService
from spinwheel.wheel.types import IssuedToken


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Spin token batch issuing tool")
    parser.add_argument("--quantity", type=int, required=True)
    parser.add_argument("--created-by", default="cli")
    parser.add_argument("--output-csv", type=Path)
    return parser.parse_args(argv)


def _validate_args(args: argparse.Namespace) -> None:
    if not TOKEN_ISSUE_MIN_QUANTITY <= args.quantity <= TOKEN_ISSUE_MAX_QUANTITY:
        raise ValueError(
            f"--quantity must be in range {TOKEN_ISSUE_MIN_QUANTITY}..{TOKEN_ISSUE_MAX_QUANTITY}"
        )
    if not args.created_by.strip():
        raise ValueError("--created-by must not be empty")


async def _issue(args: argparse.Namespace) -> list[IssuedToken]:
    try:
        async with SessionLocal.begin() as session:
            return await TokenService.issue(
                session,
                quantity=args.quantity,
                created_by=args.created_by.strip(),
            )
    finally:
        await dispose_engine()


def _write_output(path: Path, tokens: list[IssuedToken]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["code", "token_id", "expires_at", "created_at"])
        for token in tokens:
            writer.writerow(
                [
                    token.code,
                    str(token.id),
                    token.expires_at.isoformat(),
                    token.created_at.isoformat(),
                ]
            )


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _validate_args(args)
    configure_logging(get_settings().log_level)

    tokens = await _issue(args)
    output_csv = args.output_csv or Path("reports/token_batch_output.csv")
    _write_output(output_csv, tokens)
    print(f"requested={args.quantity} issued={len(tokens)} output={output_csv}")  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
