"""Challenge server: multicasts market-data challenges and judges TCP responses."""

from __future__ import annotations

import argparse
import itertools
import random
import socket
import socketserver
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Sequence, TypeVar

RESPONSE_HEADER = "CHALLENGE_RESPONSE"
INCORRECT_RESPONSE = "INCORRECT\n"
MAX_UDP_PAYLOAD = 1400
TOLERANCE = 1e-3
SECURITY_COUNT = 10
BID_RANGE = (10.0, 100.0)
SPREAD_RANGE = (0.1, 1.0)

DEFAULT_GROUP = "239.255.0.1"
DEFAULT_UDP_PORT = 3001
DEFAULT_UDP_SOURCE_PORT = 3000
DEFAULT_TCP_PORT = 4000
DEFAULT_INTERVAL = 10.0

_Chunk = TypeVar("_Chunk", str, bytes)


@dataclass
class Challenge:
    """One round of market data and the security the traders must quote."""

    challenge_id: int
    target_ticker: str
    market_data: dict[str, tuple[float, float]] = field(default_factory=dict)
    winner_declared: bool = False
    winner_name: str = ""
    first_response_time: float | None = None


@dataclass(frozen=True)
class Order:
    """A trader's response to a challenge."""

    header: str
    challenge_id: int
    ticker: str
    bid: float
    ask: float
    client_name: str


def generate_challenge(challenge_id: int, rng: random.Random) -> Challenge:
    """Create a challenge with ten random quotes and a randomly chosen target."""
    market_data: dict[str, tuple[float, float]] = {}
    for number in range(1, SECURITY_COUNT + 1):
        ticker = f"SEC{number:04d}"
        bid = rng.uniform(*BID_RANGE)
        ask = bid + rng.uniform(*SPREAD_RANGE)
        market_data[ticker] = (bid, ask)
    target = rng.choice(list(market_data))
    return Challenge(challenge_id=challenge_id, target_ticker=target, market_data=market_data)


def format_challenge(challenge: Challenge) -> str:
    """Render a challenge as the text that is multicast to traders."""
    quotes = "".join(
        f"SEC|{ticker}|BID|{bid:g}|ASK|{ask:g}\n"
        for ticker, (bid, ask) in challenge.market_data.items()
    )
    return (
        f"{quotes}CHALLENGE_ID:{challenge.challenge_id}\n"
        f"TARGET:{challenge.target_ticker}\n"
    )


def fragment_message(message: _Chunk, fragment_size: int = MAX_UDP_PAYLOAD) -> list[_Chunk]:
    """Split ``message`` into consecutive pieces of at most ``fragment_size``."""
    if fragment_size <= 0:
        raise ValueError(f"fragment size must be positive, got {fragment_size}")
    return [message[start:start + fragment_size] for start in range(0, len(message), fragment_size)]


def parse_order(line: str) -> Order:
    """Parse a whitespace-separated order line; raise ValueError if malformed."""
    fields = line.split()
    if len(fields) < 5:
        raise ValueError(f"incomplete order: {line!r}")
    header, raw_id, ticker, raw_bid, raw_ask = fields[:5]
    client_name = fields[5] if len(fields) > 5 else ""
    try:
        return Order(
            header=header,
            challenge_id=int(raw_id),
            ticker=ticker,
            bid=float(raw_bid),
            ask=float(raw_ask),
            client_name=client_name,
        )
    except ValueError as exc:
        raise ValueError(f"malformed order: {line!r}") from exc


class ChallengeBoard:
    """Thread-safe holder of the current challenge and its winner."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._challenge: Challenge | None = None

    def publish(self, challenge: Challenge) -> None:
        """Make ``challenge`` the one that orders are judged against."""
        with self._lock:
            self._challenge = challenge

    def current(self) -> Challenge | None:
        """Return the current challenge, if one has been published."""
        with self._lock:
            return self._challenge

    def process_order(self, line: str) -> str | None:
        """Judge one order line and return the reply to send, if any.

        Lines not starting with the response header get no reply. The first
        order quoting the target's bid and ask within tolerance is recorded
        as the winner.
        """
        fields = line.split()
        if not fields or fields[0] != RESPONSE_HEADER:
            return None
        try:
            order = parse_order(line)
        except ValueError:
            return INCORRECT_RESPONSE

        correct = False
        with self._lock:
            challenge = self._challenge
            if (
                challenge is not None
                and challenge.challenge_id == order.challenge_id
                and not challenge.winner_declared
                and challenge.target_ticker == order.ticker
                and order.ticker in challenge.market_data
            ):
                expected_bid, expected_ask = challenge.market_data[order.ticker]
                if (
                    abs(order.bid - expected_bid) <= TOLERANCE
                    and abs(order.ask - expected_ask) <= TOLERANCE
                ):
                    challenge.winner_declared = True
                    challenge.winner_name = order.client_name
                    challenge.first_response_time = time.monotonic()
                    print(f"Challenge {order.challenge_id} won by {order.client_name}!", flush=True)

        return f"WINNER {order.client_name}\n" if correct else INCORRECT_RESPONSE


def broadcast_challenges(
    board: ChallengeBoard,
    sock: socket.socket,
    group: str = DEFAULT_GROUP,
    port: int = DEFAULT_UDP_PORT,
    interval: float = DEFAULT_INTERVAL,
    rng: random.Random | None = None,
    rounds: int | None = None,
) -> None:
    """Generate, publish and multicast challenges; run forever if ``rounds`` is None."""
    rng = rng if rng is not None else random.Random()
    destination = (group, port)
    counter = itertools.count(1)
    ids = counter if rounds is None else itertools.islice(counter, rounds)
    for challenge_id in ids:
        challenge = generate_challenge(challenge_id, rng)
        message = format_challenge(challenge)
        print(f"Challenge Broadcast:\n{message}", flush=True)
        board.publish(challenge)
        for fragment in fragment_message(message.encode("ascii")):
            try:
                sock.sendto(fragment, destination)
            except OSError as exc:
                print(f"UDP send error: {exc}", file=sys.stderr)
        print(
            f"Broadcasted challenge {challenge.challenge_id} TARGET: {challenge.target_ticker}",
            flush=True,
        )
        time.sleep(interval)


class _OrderHandler(socketserver.StreamRequestHandler):
    server: _OrderServer

    def handle(self) -> None:
        print(f"Client connected: {self.client_address[0]}:{self.client_address[1]}", flush=True)
        for raw in self.rfile:
            line = raw.decode("utf-8", errors="replace").rstrip("\n")
            if not line:
                continue
            print(f"Received order: {line}", flush=True)
            reply = self.server.board.process_order(line)
            if reply is None:
                continue
            try:
                self.wfile.write(reply.encode("utf-8"))
                self.wfile.flush()
            except OSError as exc:
                print(f"TCP send error: {exc}", file=sys.stderr)
                return


class _OrderServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], board: ChallengeBoard) -> None:
        self.board = board
        super().__init__(address, _OrderHandler)


def make_order_server(
    board: ChallengeBoard, host: str = "", port: int = DEFAULT_TCP_PORT
) -> socketserver.ThreadingTCPServer:
    """Return a bound TCP server that judges order lines against ``board``."""
    return _OrderServer((host, port), board)


def _broadcast_forever(
    board: ChallengeBoard, group: str, port: int, source_port: int, interval: float
) -> None:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.bind(("", source_port))
            broadcast_challenges(board, sock, group, port, interval)
    except Exception as exc:  # the broadcaster reports and stops on any failure
        print(f"UDP Error: {exc}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the challenge server."""
    parser = argparse.ArgumentParser(description="Broadcast challenges and judge responses.")
    parser.add_argument("--group", default=DEFAULT_GROUP)
    parser.add_argument("--udp-port", type=int, default=DEFAULT_UDP_PORT)
    parser.add_argument("--udp-source-port", type=int, default=DEFAULT_UDP_SOURCE_PORT)
    parser.add_argument("--tcp-port", type=int, default=DEFAULT_TCP_PORT)
    parser.add_argument("--interval", type=float, default=DEFAULT_INTERVAL)
    args = parser.parse_args(argv)

    board = ChallengeBoard()
    try:
        broadcaster = threading.Thread(
            target=_broadcast_forever,
            args=(board, args.group, args.udp_port, args.udp_source_port, args.interval),
            daemon=True,
        )
        broadcaster.start()
        with make_order_server(board, "", args.tcp_port) as server:
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                pass
    except Exception as exc:  # report and exit cleanly, like the service loop
        print(f"Exception in main: {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())