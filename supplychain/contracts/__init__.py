"""Contracts package.

Public event contracts published by the client core: stream names, envelope
fields and v1 payload semantics. These are *event* contracts; the on-chain
SupplyChain contract interface lives in ``supplychain.ledger``.
"""
