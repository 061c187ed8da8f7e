"""Parsing of market-data challenges and construction of challenge responses.

A challenge message is a block of newline-terminated lines::

    SEC|SEC0001|BID|12.34|ASK|12.56
    ...
    CHALLENGE_ID:7
    TARGET:SEC0003

The response names the challenge, the target ticker, its bid and ask as they
appeared in the message, and the trader.
"""

from __future__ import annotations

RESPONSE_HEADER = "CHALLENGE_RESPONSE"

_SECURITY_PREFIX = "SEC|"
_BID_MARKER = "|BID|"
_ASK_MARKER = "|ASK|"


def _non_empty_lines(message: str) -> list[str]:
    return [line for line in message.splitlines() if line]


def _value_after_colon(line: str, what: str) -> str:
    _key, sep, value = line.partition(":")
    if not sep or not value:
        raise ValueError(f"malformed {what} line: {line!r}")
    return value


def find_target_line(message: str, target: str) -> str | None:
    """Return the quote line for ``target``, starting at its ticker.

    Quote lines are scanned from the top; scanning stops at the first line
    that is not a quote, and ``None`` is returned if no quote matched.
    """
    for line in message.splitlines():
        if not line.startswith(_SECURITY_PREFIX):
            return None
        rest = line[len(_SECURITY_PREFIX):]
        if rest.startswith(target):
            return rest
    return None


def target_ticker(message: str) -> str:
    """Return the ticker named on the final ``TARGET:`` line."""
    lines = _non_empty_lines(message)
    if not lines:
        raise ValueError("empty challenge message")
    return _value_after_colon(lines[-1], "target")


def challenge_id(message: str) -> str:
    """Return the challenge identifier, as written in the message."""
    lines = _non_empty_lines(message)
    if len(lines) < 2:
        raise ValueError("challenge message has no identifier line")
    return _value_after_colon(lines[-2], "challenge id")


def bid_and_ask(target_line: str, target: str) -> tuple[str, str]:
    """Split a quote line starting at ``target`` into its bid and ask text."""
    prefix = f"{target}{_BID_MARKER}"
    if not target_line.startswith(prefix):
        raise ValueError(f"quote line does not start with {prefix!r}: {target_line!r}")
    body = target_line[len(prefix):].split("\n", 1)[0]
    bid, sep, ask = body.partition(_ASK_MARKER)
    if not sep or not bid or not ask:
        raise ValueError(f"malformed quote line: {target_line!r}")
    return bid, ask


def build_response(message: str, trader_name: str) -> str:
    """Build the newline-terminated response line for a challenge message."""
    ticker = target_ticker(message)
    identifier = challenge_id(message)
    line = find_target_line(message, ticker)
    if line is None:
        raise ValueError(f"no quote for target {ticker!r}")
    bid, ask = bid_and_ask(line, ticker)
    return f"{RESPONSE_HEADER} {identifier} {ticker} {bid} {ask} {trader_name}\n"