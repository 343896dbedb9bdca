#!/usr/bin/env python3
"""Command line pre-flight checks against a relay hub"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from preflight.config import Settings, settings
from preflight.core.feasibility import (
    ContractInteractor,
    DeployTransactionRequest,
    FeasibilityVerdict,
    RelayTransactionRequest,
)
from preflight.errors import PreflightError
from preflight.gateway import RpcContractGateway
from preflight.logging_config import setup_logging


def load_request(path: str) -> Dict[str, Any]:
    """Read a transaction request JSON document (``-`` for stdin)"""
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def print_verdict(verdict: FeasibilityVerdict) -> None:
    """Pretty print a feasibility verdict"""
    if verdict.accepted:
        print("✅ Transaction is feasible")
    elif verdict.reverted_in_destination:
        print("⚠️  Relay succeeds but the destination call reverts")
    else:
        print(f"❌ Transaction rejected at {verdict.stage.value}")

    print("=" * 50)
    print(f"Verifier accepted:        {verdict.verifier_accepted}")
    print(f"Reverted:                 {verdict.reverted}")
    print(f"Reverted in destination:  {verdict.reverted_in_destination}")
    if verdict.transaction_id:
        print(f"Transaction id:           {verdict.transaction_id}")
    if verdict.detail:
        print(f"Detail: {verdict.detail}")


async def cli_hub_version(gateway: RpcContractGateway, config: Settings) -> int:
    version = await gateway.remote_hub_version()
    checker = ContractInteractor(gateway, config=config).version_checker
    compatible = checker.is_compatible(version)
    marker = "✅" if compatible else "❌"
    print(f"{marker} Hub version {version} (supported range {checker.compatibility_range})")
    return 0 if compatible else 1


async def cli_check_relay(interactor: ContractInteractor, path: str, signature: Optional[str]) -> int:
    transaction_request = RelayTransactionRequest.from_dict(load_request(path))
    verdict = await interactor.check_relay_feasibility(
        transaction_request.relay_request,
        signature or transaction_request.metadata.signature,
    )
    print_verdict(verdict)
    return 0 if verdict.accepted else 1


async def cli_check_deploy(interactor: ContractInteractor, path: str) -> int:
    transaction_request = DeployTransactionRequest.from_dict(load_request(path))
    verdict = await interactor.check_deploy_feasibility(transaction_request)
    print_verdict(verdict)
    return 0 if verdict.accepted else 1


async def cli_estimate_gas(interactor: ContractInteractor, path: str, signature: Optional[str]) -> int:
    transaction_request = RelayTransactionRequest.from_dict(load_request(path))
    gas = await interactor.estimate_max_possible_gas(
        transaction_request.relay_request,
        signature or transaction_request.metadata.signature,
    )
    print(f"⛽ Max possible gas: {gas}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Relay pre-flight CLI")
    parser.add_argument("--rpc-url", help="Node JSON-RPC URL (default: from settings)")
    parser.add_argument("--log-level", help="Log level (default: from settings)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("hub-version", help="Check the relay hub version")

    relay_parser = subparsers.add_parser("check-relay", help="Check a relay transaction request")
    relay_parser.add_argument("request", help="Path to the transaction request JSON ('-' for stdin)")
    relay_parser.add_argument("--signature", help="Override the signature from the request metadata")

    deploy_parser = subparsers.add_parser("check-deploy", help="Check a deploy transaction request")
    deploy_parser.add_argument("request", help="Path to the transaction request JSON ('-' for stdin)")

    estimate_parser = subparsers.add_parser("estimate-gas", help="Estimate max possible relay gas")
    estimate_parser.add_argument("request", help="Path to the transaction request JSON ('-' for stdin)")
    estimate_parser.add_argument("--signature", help="Override the signature from the request metadata")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    setup_logging(args.log_level)
    config = Settings(rpc_url=args.rpc_url) if args.rpc_url else settings
    gateway = RpcContractGateway(config=config)

    try:
        if args.command == "hub-version":
            return await cli_hub_version(gateway, config)

        interactor = await ContractInteractor.initialize(gateway, config=config)

        if args.command == "check-relay":
            return await cli_check_relay(interactor, args.request, args.signature)
        if args.command == "check-deploy":
            return await cli_check_deploy(interactor, args.request)
        if args.command == "estimate-gas":
            return await cli_estimate_gas(interactor, args.request, args.signature)

        print(f"❌ Unknown command: {args.command}")
        parser.print_help()
        return 2
    except PreflightError as e:
        print(f"❌ Error: {e}")
        return 1
    finally:
        await gateway.aclose()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
