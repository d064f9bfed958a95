# gossipchain

A small proof-of-work blockchain node. Each node keeps its chain, mempool and
peer list in memory, mines blocks from pending transactions, and shares new
blocks and newly joined peers with the other nodes over HTTP.

## Install

```
pip install .
```

## Configure

A node reads a YAML file. Its path comes from `--config` or, when that is
not given, from the `CONFIG_PATH` environment variable. Keys that are left
out default to zero or empty; unknown keys are ignored.

```yaml
complexity: 3                 # exact number of zeros among the first three hex digits of a block hash (0-3)
maxTransactionsPerBlock: 2    # size of the batch of pending transactions that is mined into a block
host: http://localhost        # host:port is the address this node announces
port: 8080
nodeDistributionTimeOut: 5    # seconds; 0 means no timeout
blockDistributionTimeout: 5   # seconds; 0 means no timeout
blockInquiryTimeOut: 5        # seconds; 0 means no timeout
knownNodes:
  - http://localhost:8081
```

## Run

```
gossipchain --config ./config/config_1.yml
```

On start the node registers the known nodes from the configuration, mines a
genesis block, starts the miner in background threads, announces itself to
each known node (`POST <node>/node/add`) and serves the HTTP API on the
configured port on every interface. Stop it with Ctrl-C.

Start several nodes with different configuration files to form a cluster.

## HTTP API

| Path           | Purpose                                                              |
|----------------|----------------------------------------------------------------------|
| `/chain`       | the whole chain                                                      |
| `/transaction` | add a transaction (`amount`, `sender`, `receiver`, `fee`)            |
| `/node/add`    | register a peer (`url`, `informed_nodes`) and pass it on to the peers not yet informed |
| `/node/get`    | list known peers                                                     |
| `/block/add`   | offer a block mined elsewhere (`block`, `metadata.caller_address`)   |
| `/block/{n}`   | the first `n` blocks of the chain                                    |

Routes answer any method; `OPTIONS` is answered as a CORS preflight, and
every reply allows any origin. Unknown paths give 404.

Every reply is JSON with a `success` flag; failures carry an `error` message
and successful reads a `result`. Blocks from `/block/{n}` use the keys
`index`, `data`, `merkle_root`, `hash`, `previous_hash`, `timestamp` and
`nonce`; blocks from `/chain` use the same fields with capitalised names
(`Index`, `Data`, `MerkleRoot`, ...).

A block is mined once the mempool holds at least `maxTransactionsPerBlock`
transactions ready for mining; the highest-fee ones are taken. An offered
block is accepted when it follows the last block's hash and its header hash
meets the complexity; when the offering node is ahead, the missing blocks
are fetched from it with `GET <caller_address>/block/<n>`.

## Use as a library

```python
from gossipchain.config import load_config
from gossipchain.cli import build_node

config = load_config("config.yml")
node = build_node(config)
status, body = node.api.dispatch("GET", "/chain")
```

`build_node` wires together the `BlockChain`, `MemPool`, `Miner`,
`NodeRegistry` and controllers, and returns a `NodeApp`; it does not start
the miner or a server (`node.miner.start()`, `gossipchain.server.serve`).
The pieces can also be used one at a time: `Block.mine`,
`merkle_root_from_hashes` and `hash_meets_complexity` in `gossipchain.block`,
the in-memory stores in `gossipchain.storage`, the request and response
shapes in `gossipchain.messages`, and `Api.dispatch` in `gossipchain.server`
to route a request without a network.

## What it does not do

- Nothing is stored on disk: the chain, mempool and peer list live in memory
  and are lost when the node stops.
- The node serves only the JSON API above; there is no web front end.
- Transactions are not signed or checked against balances, and mined
  transactions stay in the mempool, marked as mined.

## Tests

```
pip install .[test]
pytest
```