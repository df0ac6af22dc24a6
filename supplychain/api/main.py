from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException
import uvicorn

from supplychain.client import SupplyChainClient, build_client
from supplychain.core.settings import load_settings


def _product_payload(product_id: int, fields: tuple) -> dict:
    # Opaque tuple fields are returned as-is, stringified where JSON can't carry them.
    return {"id": product_id, "info": [f if isinstance(f, (int, bool, str, list)) else str(f) for f in fields]}


def create_app(client: SupplyChainClient) -> FastAPI:
    app = FastAPI(title="SupplyChain client API")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "signed": client.gateway.is_signed}

    @app.get("/status")
    def status() -> dict:
        return client.banner.current().to_dict()

    @app.get("/dashboard")
    def dashboard() -> dict:
        return client.dashboard.latest.to_dict()

    @app.post("/dashboard/refresh")
    async def refresh_dashboard() -> dict:
        stats = await client.refresh_dashboard()
        return stats.to_dict()

    @app.post("/wallet/connect")
    async def connect_wallet() -> dict:
        account = await client.connection.connect()
        if account is None:
            raise HTTPException(status_code=502, detail=client.banner.current().message)
        return {"account": account}

    @app.get("/products")
    async def products() -> dict:
        report = await client.load_all_products()
        if report is None:
            raise HTTPException(status_code=502, detail=client.banner.current().message)
        return {
            "registry_size": report.registry_size,
            "unreadable": [e.product_id for e in report.unreadable],
            "products": [_product_payload(pid, record.fields) for pid, record in report.records],
        }

    @app.get("/products/{product_id}")
    async def product(product_id: str) -> dict:
        details = await client.search_product(product_id)
        if details is None:
            raise HTTPException(status_code=404, detail=client.banner.current().message)
        return _product_payload(details.id, details.fields)

    @app.get("/roles/{address}")
    async def role(address: str) -> dict:
        resolved = await client.role_of(address)
        return {"address": address, "role": resolved.value}

    @app.post("/transactions/{operation}")
    async def submit(operation: str, args: Dict[str, Any] = Body(default={})) -> dict:
        if operation not in client.transactions.operation_names:
            raise HTTPException(status_code=404, detail=f"unknown operation: {operation}")
        # "operation" and "token" are reserved by submit().
        fields = {k: v for k, v in args.items() if k not in {"operation", "token"}}
        result = await client.transactions.submit(operation, **fields)
        return result.to_dict()

    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    client = build_client(load_settings())
    uvicorn.run(create_app(client), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
