"""ABI fragment of the deployed SupplyChain contract.

Only the functions the client calls are listed. Output names mirror the
contract's return tuples; getBasicProductInfo must keep the producer at index
1 and the approval flag at index 6.
"""

from __future__ import annotations

from typing import Any


def _param(name: str, type_: str) -> dict[str, str]:
    return {"name": name, "type": type_, "internalType": type_}


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]],
    *,
    view: bool,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [_param(n, t) for n, t in inputs],
        "outputs": [_param(n, t) for n, t in outputs],
        "stateMutability": "view" if view else "nonpayable",
    }


_BASIC_INFO_OUTPUTS = [
    ("id", "uint256"),
    ("producer", "address"),
    ("name", "string"),
    ("batchId", "string"),
    ("category", "string"),
    ("productionDate", "uint256"),
    ("isQualityApproved", "bool"),
]

_FULL_DETAILS_OUTPUTS = _BASIC_INFO_OUTPUTS + [
    ("metadataURI", "string"),
    ("qualityExpiry", "uint256"),
    ("distributor", "address"),
    ("retailer", "address"),
    ("consumer", "address"),
    ("certifications", "string[]"),
]


SUPPLY_CHAIN_ABI: list[dict[str, Any]] = [
    _fn("nextProductId", [], [("", "uint256")], view=True),
    _fn("getBasicProductInfo", [("productId", "uint256")], _BASIC_INFO_OUTPUTS, view=True),
    _fn("getFullProductDetails", [("productId", "uint256")], _FULL_DETAILS_OUTPUTS, view=True),
    _fn("isProducerRegistered", [("account", "address")], [("", "bool")], view=True),
    _fn("isQualityInspectorRegistered", [("account", "address")], [("", "bool")], view=True),
    _fn("isDistributorRegistered", [("account", "address")], [("", "bool")], view=True),
    _fn("isRetailerRegistered", [("account", "address")], [("", "bool")], view=True),
    _fn("totalProducers", [], [("", "uint256")], view=True),
    _fn("totalQualityInspectors", [], [("", "uint256")], view=True),
    _fn("totalDistributors", [], [("", "uint256")], view=True),
    _fn("totalRetailers", [], [("", "uint256")], view=True),
    _fn("registerProducer", [("account", "address"), ("details", "string")], [], view=False),
    _fn("registerQualityInspector", [("account", "address"), ("details", "string")], [], view=False),
    _fn("registerDistributor", [("account", "address"), ("details", "string")], [], view=False),
    _fn("registerRetailer", [("account", "address"), ("details", "string")], [], view=False),
    _fn(
        "createProduct",
        [
            ("name", "string"),
            ("batchId", "string"),
            ("category", "string"),
            ("productionDate", "uint256"),
            ("metadataURI", "string"),
        ],
        [],
        view=False,
    ),
    _fn("assignDistributor", [("productId", "uint256"), ("distributor", "address")], [], view=False),
    _fn("assignRetailer", [("productId", "uint256"), ("retailer", "address")], [], view=False),
    _fn("addCertification", [("productId", "uint256"), ("certification", "string")], [], view=False),
    _fn("approveQuality", [("productId", "uint256"), ("expiryDate", "uint256")], [], view=False),
    _fn("sellToConsumer", [("productId", "uint256"), ("consumer", "address")], [], view=False),
]
