"""Tests for the contract ABI helpers."""

import json

import pytest

from post_oracle.ledger.abi import (
    OUTCOME_EVENTS,
    POST_MANAGER_ABI,
    REQUEST_EVENT,
    load_abi,
)


def names(abi, type_):
    return {entry["name"] for entry in abi if entry["type"] == type_}


def test_builtin_abi_covers_oracle_surface():
    functions = names(POST_MANAGER_ABI, "function")
    events = names(POST_MANAGER_ABI, "event")

    assert {
        "similarityThreshold",
        "processSimilarityResult",
        "markPostFailed",
        "getPost",
        "getApprovedPosts",
        "setOracle",
    } <= functions
    assert {REQUEST_EVENT, *OUTCOME_EVENTS} <= events


def test_request_event_indexes_post_id():
    event = next(entry for entry in POST_MANAGER_ABI if entry["name"] == REQUEST_EVENT)

    assert event["inputs"] == [{"name": "postId", "type": "uint256", "indexed": True}]


def test_load_abi_defaults_to_builtin():
    assert load_abi() is POST_MANAGER_ABI


def test_load_abi_reads_hardhat_artifact(tmp_path):
    artifact = tmp_path / "PostManager.json"
    artifact.write_text(json.dumps({"contractName": "PostManager", "abi": [{"x": 1}]}))

    assert load_abi(artifact) == [{"x": 1}]


def test_load_abi_reads_bare_list(tmp_path):
    path = tmp_path / "abi.json"
    path.write_text(json.dumps([{"x": 1}]))

    assert load_abi(str(path)) == [{"x": 1}]


def test_load_abi_rejects_other_shapes(tmp_path):
    path = tmp_path / "abi.json"
    path.write_text(json.dumps({"bytecode": "0x"}))

    with pytest.raises(ValueError):
        load_abi(path)
