"""Command line interface for goupc."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence

import httpx
from tqdm import tqdm

from goupc import __version__
from goupc.config import ConfigError, ConfigStore
from goupc.models import NOT_AVAILABLE, BatchFailure, NormalizedProduct, PairSpec
from goupc.services.lookup import BASE_URL, BarcodeLookupError, GoUpcClient, format_product

logger = logging.getLogger(__name__)

CARD_WIDTH = 56
DESCRIPTION_LIMIT = 120
# Batch table column widths: code, name, brand.
TABLE_COLUMNS = (18, 32, 24)
ERROR_PREVIEW = 28

SETUP_HINT = "goupc config set --api-key <YOUR_API_KEY>"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def mask_api_key(api_key: str | None) -> str:
    """Hide all but the first and last four characters of a key."""
    if not api_key:
        return "(not set)"
    if len(api_key) > 8:
        return f"{api_key[:4]}****{api_key[-4:]}"
    return "****"


def pad_right(text: str, width: int) -> str:
    """Pad *text* with spaces to *width*, cutting it if longer."""
    return text[:width] if len(text) >= width else text.ljust(width)


def truncate(text: str, max_len: int) -> str:
    return text[: max_len - 1] + "…" if len(text) > max_len else text


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def print_product(product: NormalizedProduct, code: str | None = None) -> None:
    """Print a product card for a normalised product."""
    divider = "─" * CARD_WIDTH
    print(divider)
    print(f"  {product.name}")
    print(divider)
    print(f"  Barcode  {code or product.barcode}")
    if product.barcodeType != NOT_AVAILABLE:
        print(f"  Type     {product.barcodeType}")
    print(f"  Brand    {product.brand}")
    print(f"  Category {product.category}")
    if product.description != NOT_AVAILABLE:
        description = product.description
        if len(description) > DESCRIPTION_LIMIT:
            description = description[: DESCRIPTION_LIMIT - 3] + "..."
        print(f"  Desc     {description}")
    if product.imageUrl != NOT_AVAILABLE:
        print(f"  Image    {product.imageUrl}")

    if product.specs:
        print("\n  Specs:")
        for spec in product.specs:
            if isinstance(spec, PairSpec):
                print(f"    • {spec.key}: {spec.value}")
            else:
                print(f"    • {spec.text}")
    print(divider)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _require_auth(store: ConfigStore) -> bool:
    if store.is_configured():
        return True
    _err(f"Error: No API key configured.\nRun: {SETUP_HINT}\n\nGet your key at: https://go-upc.com")
    return False


def cmd_config_set(args: argparse.Namespace, store: ConfigStore, transport: httpx.BaseTransport | None) -> int:  # noqa: ARG001
    api_key = (args.api_key or "").strip()
    if not api_key:
        _err("Error: --api-key is required.")
        _err("Usage: goupc config set --api-key <YOUR_KEY>")
        return 1
    store.set("apiKey", api_key)
    print(f"✔ API key saved.\nConfig stored at: {store.path}")
    return 0


def cmd_config_show(args: argparse.Namespace, store: ConfigStore, transport: httpx.BaseTransport | None) -> int:  # noqa: ARG001
    api_key = store.get("apiKey")
    print("\nCurrent Configuration\n")
    if store.is_configured():
        print(f"  API Key: {mask_api_key(api_key)}")
        print("\n  Status: Configured")
    else:
        print("  API Key: (not set)")
        print("\n  Status: Not configured")
        print("\n  Run: goupc config set --api-key <YOUR_KEY>")
    print(f"\n  File: {store.path}\n")
    return 0


def cmd_config_clear(args: argparse.Namespace, store: ConfigStore, transport: httpx.BaseTransport | None) -> int:  # noqa: ARG001
    store.clear()
    print("Configuration cleared.")
    return 0


def cmd_lookup(args: argparse.Namespace, store: ConfigStore, transport: httpx.BaseTransport | None) -> int:
    if not _require_auth(store):
        return 1
    client = GoUpcClient(store.get("apiKey"), transport=transport)
    _err(f"Looking up barcode {args.code}...")
    try:
        data = client.lookup(args.code)
    except BarcodeLookupError as e:
        _err(f"Lookup failed\n\n{e}")
        return 1
    _err("Product found!")

    if args.json:
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0
    print_product(format_product(data), args.code)
    return 0


def cmd_batch(args: argparse.Namespace, store: ConfigStore, transport: httpx.BaseTransport | None) -> int:
    if not _require_auth(store):
        return 1
    client = GoUpcClient(store.get("apiKey"), transport=transport)
    codes = tqdm(
        args.codes,
        desc=f"Looking up {len(args.codes)} barcode(s)",
        unit="code",
        file=sys.stderr,
        leave=False,
        disable=not sys.stderr.isatty(),
    )
    try:
        results = client.lookup_batch(codes)
    except Exception as e:
        logger.exception("Batch lookup aborted")
        _err(f"Batch lookup failed\n\n{e}")
        return 1
    _err(f"Done. {len(results)} result(s).")

    if args.json:
        print(json.dumps([result.model_dump() for result in results], indent=2, ensure_ascii=False))
        return 0

    code_w, name_w, brand_w = TABLE_COLUMNS
    divider = "─" * (code_w + name_w + brand_w + 6)
    print(divider)
    print(pad_right("Code", code_w) + pad_right("Name", name_w) + pad_right("Brand", brand_w))
    print(divider)
    for result in results:
        if isinstance(result, BatchFailure):
            print(
                pad_right(result.code, code_w)
                + pad_right("Error: " + result.error[:ERROR_PREVIEW], name_w)
                + pad_right("—", brand_w)
            )
            continue
        product = format_product(result.data)
        print(
            pad_right(result.code, code_w)
            + pad_right(truncate(product.name, name_w - 2), name_w)
            + pad_right(truncate(product.brand, brand_w - 2), brand_w)
        )
    print(divider)

    failed = sum(1 for result in results if isinstance(result, BatchFailure))
    summary = f"\n  Found: {len(results) - failed}"
    if failed:
        summary += f"  Failed: {failed}"
    print(summary + "\n")
    return 0


def cmd_info(args: argparse.Namespace, store: ConfigStore, transport: httpx.BaseTransport | None) -> int:  # noqa: ARG001
    configured = store.is_configured()
    print(f"\nGo-UPC Barcode Lookup CLI — goupc v{__version__}")
    print("─" * CARD_WIDTH)

    print("\nAPI Details")
    print("  Provider : Go-UPC (https://go-upc.com)")
    print(f"  Base URL : {BASE_URL}")
    print("  Auth     : Bearer token (Authorization header)")
    print("  Endpoint : GET /code/{barcode}")

    print("\nStatus")
    print(f"  API Key  : {mask_api_key(store.get('apiKey'))} {'✔' if configured else '✗'}")
    print(f"  Ready    : {'Yes' if configured else 'No — run: goupc config set --api-key <KEY>'}")

    print("\nUsage Examples")
    for comment, command in (
        ("Set your API key", "goupc config set --api-key sk-abc123"),
        ("Look up a single UPC", "goupc lookup 012345678905"),
        ("Look up an EAN", "goupc lookup 5901234123457"),
        ("Look up an ISBN", "goupc lookup 9780262046305"),
        ("Batch lookup (space-separated)", "goupc batch 012345678905 5901234123457 9780262046305"),
        ("Get JSON output", "goupc lookup 012345678905 --json"),
        ("Show stored config", "goupc config show"),
    ):
        print(f"  # {comment}\n  {command}\n")

    print("Tips")
    print("  • UPC codes are 12 digits (North America)")
    print("  • EAN codes are 13 digits (international)")
    print("  • ISBN-13 codes work directly as barcodes")
    print("  • Use --json for scripting and piping to jq")
    print("  • Rate limits depend on your Go-UPC plan")
    print("\n  Docs   : https://go-upc.com/docs\n")
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goupc",
        description="Go-UPC Barcode Lookup CLI — look up products by UPC, EAN, or ISBN barcode",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    config = commands.add_parser("config", help="Manage CLI configuration (API key, etc.)")
    config_commands = config.add_subparsers(dest="config_command", required=True)
    config_set = config_commands.add_parser("set", help="Set a configuration value")
    config_set.add_argument("--api-key", help="Your Go-UPC API key")
    config_set.set_defaults(func=cmd_config_set)
    config_commands.add_parser("show", help="Show current configuration").set_defaults(func=cmd_config_show)
    config_commands.add_parser("clear", help="Clear all stored configuration").set_defaults(func=cmd_config_clear)

    lookup = commands.add_parser("lookup", help="Look up a product by barcode (UPC / EAN / ISBN)")
    lookup.add_argument("code", help="Barcode to look up")
    lookup.add_argument("--json", action="store_true", help="Output raw JSON response")
    lookup.set_defaults(func=cmd_lookup)

    batch = commands.add_parser("batch", help="Look up multiple barcodes (space-separated)")
    batch.add_argument("codes", nargs="+", help="Barcodes to look up")
    batch.add_argument("--json", action="store_true", help="Output raw JSON array")
    batch.set_defaults(func=cmd_batch)

    commands.add_parser("info", help="Show API information and usage tips").set_defaults(func=cmd_info)
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    store: ConfigStore | None = None,
    transport: httpx.BaseTransport | None = None,
) -> int:
    """Run the CLI and return the process exit code.

    *store* and *transport* default to the user's config file and the real
    network; tests inject their own.
    """
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    setup_logging(args.log_level)
    store = store or ConfigStore.open()
    try:
        return args.func(args, store, transport)
    except ConfigError as e:
        _err(f"Error: {e}")
        return 1


__all__ = ["build_parser", "main", "mask_api_key", "print_product"]
