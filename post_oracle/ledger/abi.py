"""Contract ABI for the post manager surface used by the oracle."""

import json
from pathlib import Path
from typing import Any

REQUEST_EVENT = "SimilarityCheckRequested"
OUTCOME_EVENTS = ("PostSubmitted", "PostApproved", "PostRejected", "PostFailed")


def _event(name: str, *inputs: tuple[str, str, bool]) -> dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": arg, "type": type_, "indexed": indexed}
            for arg, type_, indexed in inputs
        ],
    }


def _function(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[dict[str, Any]],
    mutability: str,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "stateMutability": mutability,
        "inputs": [{"name": arg, "type": type_} for arg, type_ in inputs],
        "outputs": outputs,
    }


POST_COMPONENTS: list[dict[str, Any]] = [
    {"name": "id", "type": "uint256"},
    {"name": "author", "type": "address"},
    {"name": "username", "type": "string"},
    {"name": "status", "type": "uint8"},
    {"name": "similarityScore", "type": "uint256"},
    {"name": "mostSimilarPostId", "type": "string"},
    {"name": "ipfsCID", "type": "string"},
    {"name": "timestamp", "type": "uint256"},
]

POST_MANAGER_ABI: list[dict[str, Any]] = [
    _event(REQUEST_EVENT, ("postId", "uint256", True)),
    _event(
        "PostSubmitted",
        ("postId", "uint256", True),
        ("author", "address", True),
        ("username", "string", False),
    ),
    _event("PostApproved", ("postId", "uint256", True), ("ipfsCID", "string", False)),
    _event(
        "PostRejected",
        ("postId", "uint256", True),
        ("similarityScore", "uint256", False),
        ("mostSimilarPostId", "string", False),
    ),
    _event("PostFailed", ("postId", "uint256", True), ("reason", "string", False)),
    _function(
        "similarityThreshold", [], [{"name": "", "type": "uint256"}], "view"
    ),
    _function(
        "processSimilarityResult",
        [
            ("postId", "uint256"),
            ("similarityScore", "uint256"),
            ("mostSimilarPostId", "string"),
            ("ipfsCID", "string"),
        ],
        [],
        "nonpayable",
    ),
    _function(
        "markPostFailed",
        [("postId", "uint256"), ("reason", "string")],
        [],
        "nonpayable",
    ),
    _function(
        "getPost",
        [("postId", "uint256")],
        [{"name": "", "type": "tuple", "components": POST_COMPONENTS}],
        "view",
    ),
    _function(
        "getApprovedPosts",
        [("offset", "uint256"), ("limit", "uint256")],
        [{"name": "", "type": "tuple[]", "components": POST_COMPONENTS}],
        "view",
    ),
    _function("setOracle", [("oracle", "address")], [], "nonpayable"),
]


def load_abi(path: str | Path | None = None) -> list[dict[str, Any]]:
    """Load a contract ABI.

    Accepts a Hardhat artifact (an object with an ``abi`` key) or a bare ABI
    list. Without a path the built-in ABI is returned.

    Args:
        path: Optional path to an artifact or ABI JSON file

    Returns:
        ABI entries

    Raises:
        ValueError: If the file holds neither form
    """
    if path is None:
        return POST_MANAGER_ABI

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict) and isinstance(data.get("abi"), list):
        return list(data["abi"])
    if isinstance(data, list):
        return data
    raise ValueError(f"No ABI found in {path}")
