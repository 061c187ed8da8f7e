# tickrace

A small market-data race. A server multicasts a snapshot of ten securities
and names one of them as the target. Clients race to send the target's bid
and ask back over TCP.

## Installing

    pip install .

The package needs only the Python standard library, version 3.10 or newer.

## The message format

Each challenge is sent as UDP multicast to `239.255.0.1:3001`:

    SEC|SEC0001|BID|42.17|ASK|42.83
    ...
    SEC|SEC0010|BID|77.2|ASK|77.91
    CHALLENGE_ID:7
    TARGET:SEC0004

Prices are written with up to six significant digits. A message longer than
1400 bytes is sent as several datagrams.

A client answers on a TCP connection to port 4000 with one line:

    CHALLENGE_RESPONSE 7 SEC0004 <bid> <ask> <trader name>

## Running the server

    tickrace-server

The server accepts these options:

- `--group`: the multicast group. The default is `239.255.0.1`.
- `--udp-port`: the destination port. The default is 3001.
- `--udp-source-port`: the local port that datagrams are sent from. The default is 3000.
- `--tcp-port`: the order port. The default is 4000.
- `--interval`: the number of seconds between challenges. The default is 10.

The server handles an incoming line as follows:

- It ignores lines that do not start with `CHALLENGE_RESPONSE`.
- It checks the bid and ask of every other line against the current challenge, with a tolerance of 0.001.
- For the current challenge, it records the client name of the first correct order as the winner on the `ChallengeBoard`.
- It prints a line to standard output when a challenge is won.

## Running the trading engine

    tickrace-engine

The engine joins the multicast group and connects to the order server. It
answers every challenge it receives and prints each response as `SENT: ...`.
If anything fails, it prints `Error: ...` and exits with status 1.

The engine accepts these options:

- `--name`: the trader name. The default is `SebsBoys`.
- `--buffer-size`: the largest datagram the engine reads. The default is 400.
- `--udp-group` and `--udp-port`: the multicast group and port.
- `--tcp-host` and `--tcp-port`: the address of the order server. The default is `127.0.0.1:4000`.

The engine reads one datagram per challenge. With ten securities, a
challenge fits in one datagram.

## Using the library

The functions in `tickrace.parsing` work on a received message:
`find_target_line`, `target_ticker`, `challenge_id`, `bid_and_ask` and
`build_response`.

```python
from tickrace.parsing import build_response

message = (
    "SEC|SEC0001|BID|10.5|ASK|11\n"
    "SEC|SEC0002|BID|20.25|ASK|20.9\n"
    "CHALLENGE_ID:3\n"
    "TARGET:SEC0002\n"
)
print(build_response(message, "Traders"), end="")
# CHALLENGE_RESPONSE 3 SEC0002 20.25 20.9 Traders
```

These functions raise `ValueError` when a message is malformed.

`tickrace.network` opens the sockets:

- `open_tcp_connection` opens the TCP connection.
- `open_multicast_socket` opens the multicast socket.

`tickrace.engine.respond` handles one challenge. It receives the datagram,
builds the response and sends it.

`tickrace.server` lets you drive a challenge round without a network:

- `generate_challenge` creates a challenge.
- `format_challenge` turns a challenge into message text.
- `fragment_message` splits a message into datagram-sized pieces.
- `parse_order` reads an order line.
- `ChallengeBoard` judges order lines with `publish`, `current` and `process_order`.

Two functions use the network. `broadcast_challenges` sends challenges, and
it can stop after a fixed number of rounds. `make_order_server` creates the
order server.

## What it does not do

The order server never tells a client that it won. Every `CHALLENGE_RESPONSE`
line gets the reply `INCORRECT`, including the one that is recorded as the
winner. The winner is visible only through `ChallengeBoard.current()` and the
server's printed output. Nothing keeps scores across challenges, and nothing
is stored between runs.

## Tests

    pip install .[test]
    pytest