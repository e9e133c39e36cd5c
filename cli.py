"""
SuiKit - CLI Interface

Command-line access to the read-only Sui queries and config publishing.

Usage:
    python cli.py balance 0xADDRESS [--coin-type 0x2::sui::SUI]
    python cli.py metadata 0x...::usdc::USDC
    python cli.py object 0xOBJECT
    python cli.py tx DIGEST
    python cli.py checkpoint [SEQUENCE]
    python cli.py events --sender 0xADDRESS --limit 5
    python cli.py apy [--validator 0xADDRESS]
    python cli.py gas-price
    python cli.py health
    python cli.py publish-config --dir config/
"""
import sys
import json
import argparse
import logging

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

from sui_client import SuiClient, RpcFailure, SUI_COIN_TYPE
from sui_config import ConfigError, resolve_config, publish_config


def make_client(config):
    return SuiClient(config.rpc_url, timeout=config.timeout)


def dump(obj):
    print(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def cmd_balance(client, args):
    """Show the decimals-adjusted balance of an address."""
    balance = client.get_balance(args.address, args.coin_type)
    print(f"Address: {args.address}")
    print(f"Coin: {args.coin_type}")
    print(f"Balance: {balance}")


def cmd_metadata(client, args):
    dump(client.get_coin_metadata(args.coin_type))


def cmd_object(client, args):
    dump(client.get_object(args.object_id))


def cmd_tx(client, args):
    dump(client.get_transaction(args.digest))


def cmd_checkpoint(client, args):
    sequence = args.sequence
    if sequence is None:
        sequence = client.get_latest_checkpoint()
        print(f"Latest checkpoint: {sequence}")
    dump(client.get_checkpoint(sequence))


def cmd_events(client, args):
    query = {"Sender": args.sender} if args.sender else {"All": []}
    page = client.query_events(query, limit=args.limit, descending=True)
    dump(page.get("data", []))


def cmd_apy(client, args):
    if args.validator:
        apy = client.get_validator_apy(args.validator)
        if apy is None:
            print(f"Validator not found: {args.validator}")
            sys.exit(1)
        print(f"APY: {apy * 100:.2f}%")
        return
    result = client.get_validators_apy()
    print(f"Epoch: {result.get('epoch')}")
    for entry in result.get("apys", []):
        print(f"  {entry['address']}  {float(entry['apy']) * 100:.2f}%")


def cmd_gas_price(client, args):
    print(f"Reference gas price: {client.get_reference_gas_price()} MIST")


def cmd_health(client, args):
    """Check the configured Sui endpoint."""
    print(f"Checking {client.rpc_url}...")
    ok = client.health_check()
    print(f"  Sui RPC: {'OK' if ok else 'UNREACHABLE'}")
    sys.exit(0 if ok else 1)


def cmd_publish_config(args):
    path = publish_config(args.dir, force=args.force)
    print(f"Config: {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SuiKit CLI")
    parser.add_argument("--rpc", default=None, help="JSON-RPC endpoint (overrides SUI_RPC_URL)")
    parser.add_argument("--config", default=None, help="Path to a published sui.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every request (DEBUG level)")
    sub = parser.add_subparsers(dest="command", required=True)

    bal = sub.add_parser("balance", help="Show an address balance")
    bal.add_argument("address")
    bal.add_argument("--coin-type", default=SUI_COIN_TYPE, help="Coin type")

    meta = sub.add_parser("metadata", help="Show coin metadata")
    meta.add_argument("coin_type")

    obj = sub.add_parser("object", help="Show an object")
    obj.add_argument("object_id")

    tx = sub.add_parser("tx", help="Show a transaction block")
    tx.add_argument("digest")

    cp = sub.add_parser("checkpoint", help="Show a checkpoint (latest by default)")
    cp.add_argument("sequence", nargs="?", default=None)

    ev = sub.add_parser("events", help="List recent events")
    ev.add_argument("--sender", default=None, help="Filter by sender address")
    ev.add_argument("--limit", type=int, default=10, help="Max events")

    apy = sub.add_parser("apy", help="Show validator APYs")
    apy.add_argument("--validator", default=None, help="Single validator address")

    sub.add_parser("gas-price", help="Show the reference gas price")
    sub.add_parser("health", help="Check endpoint health")

    pub = sub.add_parser("publish-config", help="Write sui.json")
    pub.add_argument("--dir", default="config", help="Destination directory")
    pub.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


def log_level(args) -> int:
    # Per-request lines are logged at DEBUG
    return logging.DEBUG if args.verbose else logging.WARNING


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=log_level(args), format="%(name)s | %(message)s")

    if args.command == "publish-config":
        cmd_publish_config(args)
        return

    commands = {
        "balance": cmd_balance,
        "metadata": cmd_metadata,
        "object": cmd_object,
        "tx": cmd_tx,
        "checkpoint": cmd_checkpoint,
        "events": cmd_events,
        "apy": cmd_apy,
        "gas-price": cmd_gas_price,
        "health": cmd_health,
    }
    try:
        config = resolve_config(rpc_url=args.rpc, config_path=args.config)
        client = make_client(config)
        commands[args.command](client, args)
    except (RpcFailure, ConfigError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
