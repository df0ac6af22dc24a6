from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import os


DEFAULT_CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_STATUS_CLEAR_MS = 5000


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    rpc_url: str = DEFAULT_RPC_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    # "web3" talks to a JSON-RPC node, "memory" runs the in-process ledger.
    ledger_backend: str = "web3"
    redis_url: str | None = None
    status_clear_ms: int = DEFAULT_STATUS_CLEAR_MS
    scan_concurrency: int = 1
    # "unavailable" or "heuristic" (legacy total*2 placeholder).
    transfer_estimate: str = "unavailable"


def load_settings(path: str | Path = "config/settings.yaml") -> Settings:
    p = Path(path)

    # Keep imports optional at module import time (tests/tools may not need YAML).
    try:
        import yaml  # type: ignore
    except ModuleNotFoundError as e:  # pragma: no cover
        raise ModuleNotFoundError(
            "PyYAML is required to load config/settings.yaml. Install with: pip install pyyaml"
        ) from e

    data: Dict[str, Any] = {}
    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    # Env overrides take precedence over the file, the file over built-in defaults.
    ledger_section = data.get("ledger", {})
    rpc_url = os.getenv("SUPPLYCHAIN_RPC_URL") or ledger_section.get("rpc_url") or DEFAULT_RPC_URL
    contract_address = (
        os.getenv("SUPPLYCHAIN_CONTRACT_ADDRESS")
        or ledger_section.get("contract_address")
        or DEFAULT_CONTRACT_ADDRESS
    )
    backend = os.getenv("SUPPLYCHAIN_LEDGER_BACKEND") or ledger_section.get("backend") or "web3"
    if backend not in {"web3", "memory"}:
        raise ValueError(f"unknown ledger backend: {backend}")

    redis_url = os.getenv("SUPPLYCHAIN_REDIS_URL") or data.get("redis", {}).get("url")

    dashboard_section = data.get("dashboard", {})
    transfer_estimate = str(dashboard_section.get("transfer_estimate", "unavailable"))
    if transfer_estimate not in {"unavailable", "heuristic"}:
        raise ValueError("dashboard.transfer_estimate must be unavailable/heuristic")

    scan_concurrency = int(data.get("registry", {}).get("scan_concurrency", 1))
    if scan_concurrency < 1:
        raise ValueError("registry.scan_concurrency must be >= 1")

    return Settings(
        env=data.get("env", "dev"),
        rpc_url=rpc_url,
        contract_address=contract_address,
        ledger_backend=backend,
        redis_url=redis_url or None,
        status_clear_ms=int(data.get("status", {}).get("clear_ms", DEFAULT_STATUS_CLEAR_MS)),
        scan_concurrency=scan_concurrency,
        transfer_estimate=transfer_estimate,
    )
