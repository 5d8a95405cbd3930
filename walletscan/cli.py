"""Command-line interface for the wallet scanner."""
from __future__ import annotations

import argparse
import asyncio
import sys

from eth_utils import is_address

from .app import Engine, build_engine
from .config import load_config
from .ens import resolve_ens
from .errors import WalletScanError
from .logging_setup import configure_logging
from .models import DerivativeHolding, HoldingRecord, LPHolding
from .protocols import list_projects


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="walletscan",
        description="Multi-chain wallet holdings scanner",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    scan_parser = sub.add_parser("scan", help="Scan a wallet's holdings")
    scan_parser.add_argument(
        "wallet",
        nargs="?",
        default=None,
        help="Wallet address or ENS name (default: every wallet under 'wallets' in the config)",
    )
    scan_parser.add_argument(
        "--chain",
        action="append",
        dest="chains",
        default=None,
        help="Chain to scan (repeatable; default: all configured chains)",
    )

    sub.add_parser("chains", help="List configured chains")
    sub.add_parser("projects", help="List supported projects per chain")

    return parser


def format_holding(holding: HoldingRecord) -> str:
    """One line of text per holding."""
    head = (
        f"{holding.chain.upper():<6} {holding.location:<8} {holding.status:<9} "
        f"{holding.kind:<11} {holding.symbol:<10} {holding.balance:>18.6f}"
    )
    if isinstance(holding, LPHolding):
        return (
            f"{head}  = {holding.token0.balance:.6f} {holding.token0.symbol}"
            f" + {holding.token1.balance:.6f} {holding.token1.symbol}"
        )
    if isinstance(holding, DerivativeHolding):
        return f"{head}  ~ {holding.underlying.balance:.6f} {holding.underlying.symbol}"
    if holding.price is None:
        return f"{head}  (no price)"
    return f"{head}  ${holding.balance * holding.price:,.2f}"


async def _resolve_wallet(engine: Engine, wallet: str) -> str:
    """Address for ``wallet``, resolving ENS names through the eth chain."""
    if is_address(wallet):
        return wallet
    try:
        resolved = await resolve_ens(engine.executor, wallet)
    except (ValueError, WalletScanError) as exc:
        print(f"Could not resolve wallet: {wallet} ({exc})", file=sys.stderr)
        sys.exit(1)
    if resolved is None:
        print(f"Could not resolve wallet: {wallet}", file=sys.stderr)
        sys.exit(1)
    return resolved


async def _scan(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    engine = build_engine(config)

    if args.wallet:
        targets = [(args.wallet, tuple(args.chains or config.chains))]
    elif config.wallets:
        targets = [
            (w.address, tuple(args.chains or w.chains or config.chains)) for w in config.wallets
        ]
    else:
        print("No wallet given and none configured under 'wallets'", file=sys.stderr)
        sys.exit(1)

    unknown = sorted({c for _, chains in targets for c in chains if c not in config.chains})
    if unknown:
        print(f"Unknown chain(s): {', '.join(unknown)}", file=sys.stderr)
        sys.exit(1)

    scanned = sorted({c for _, chains in targets for c in chains})
    await asyncio.gather(*(engine.oracle.fetch_chain_prices(c) for c in scanned))

    holdings: list[HoldingRecord] = []
    for wallet, chains in targets:
        address = await _resolve_wallet(engine, wallet)
        holdings.extend(await engine.scanner.get_all_balances(address, list(chains)))

    for holding in sorted(holdings, key=lambda h: (h.owner, h.chain, h.location, h.symbol)):
        print(format_holding(holding))


def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)

    if args.command == "scan":
        asyncio.run(_scan(args))
    elif args.command == "chains":
        config = load_config(args.config)
        for name, chain in config.chains.items():
            print(f"{name.upper():<8} {chain.native_symbol:<6} {len(chain.rpc_endpoints)} endpoint(s)")
    elif args.command == "projects":
        for chain, projects in list_projects().items():
            print(f"{chain.upper():<8} {', '.join(projects)}")
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _run(args)
