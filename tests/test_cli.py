import json

import pytest

from gossipchain.cli import build_node, main
from gossipchain.config import Config


def make_config(**overrides):
    values = dict(complexity=0, max_transactions_per_block=1, host="http://localhost", port=0)
    values.update(overrides)
    return Config(**values)


def test_build_node_mines_genesis():
    app = build_node(make_config())
    chain = app.chain.get_chain()
    assert len(chain) == 1
    assert chain[0].data == "Genesis Block"
    assert chain[0].index == 1
    assert chain[0].hash[:3].count("0") == 0


def test_build_node_registers_known_nodes():
    peers = ("http://peer-a.example.com", "http://peer-b.example.com")
    app = build_node(make_config(known_nodes=peers))
    assert app.nodes.get_nodes() == list(peers)


def test_api_is_wired_to_chain():
    app = build_node(make_config())
    status, payload = app.api.dispatch("GET", "/chain", b"")
    body = json.loads(payload)
    assert status == 200
    assert [b["Hash"] for b in body["result"]] == [app.chain.last_block().hash]


def test_transaction_through_api_is_mined():
    app = build_node(make_config())
    body = json.dumps({"amount": 3, "receiver": "r", "sender": "s", "fee": 1})
    status, payload = app.api.dispatch("POST", "/transaction", body)
    assert json.loads(payload) == {"success": True}
    block = app.miner.mine_once()
    assert block is not None
    chain = app.chain.get_chain()
    assert len(chain) == 2
    assert chain[-1].previous_hash == chain[0].hash
    assert [t.amount for t in chain[-1].data] == [3.0]


def test_main_missing_config_file(tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["--config", str(tmp_path / "missing.yml")])
    assert info.value.code == 1


def test_main_without_config_path(monkeypatch):
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 1


def test_main_rejects_unknown_option():
    with pytest.raises(SystemExit) as info:
        main(["--no-such-option"])
    assert info.value.code == 2