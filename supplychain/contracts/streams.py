from __future__ import annotations

# v1 stream names (frozen semantics for v1).

LEDGER_TX_SUBMITTED_V1 = "ledger.tx.submitted.v1"
LEDGER_TX_CONFIRMED_V1 = "ledger.tx.confirmed.v1"
LEDGER_TX_FAILED_V1 = "ledger.tx.failed.v1"

REGISTRY_SCAN_COMPLETED_V1 = "registry.scan.completed.v1"

DASHBOARD_STATS_COMPUTED_V1 = "dashboard.stats.computed.v1"
