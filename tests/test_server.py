import random
import socket
import threading

import pytest

from tickrace.parsing import build_response
from tickrace.server import (
    Challenge,
    ChallengeBoard,
    Order,
    broadcast_challenges,
    format_challenge,
    fragment_message,
    generate_challenge,
    make_order_server,
    parse_order,
)


def _sample_challenge() -> Challenge:
    return Challenge(
        challenge_id=7,
        target_ticker="SEC0002",
        market_data={"SEC0001": (12.5, 13.25), "SEC0002": (40.0, 40.5)},
    )


class _RecordingSocket:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[bytes, tuple[str, int]]] = []
        self.fail = fail

    def sendto(self, data, address):
        if self.fail:
            raise OSError("network unreachable")
        self.sent.append((data, address))
        return len(data)


def test_generate_challenge_has_ten_securities_in_range():
    challenge = generate_challenge(5, random.Random(1))
    assert challenge.challenge_id == 5
    assert list(challenge.market_data) == [f"SEC{n:04d}" for n in range(1, 11)]
    for bid, ask in challenge.market_data.values():
        assert 10.0 <= bid <= 100.0
        assert 0.1 <= ask - bid <= 1.0
    assert challenge.target_ticker in challenge.market_data
    assert challenge.winner_declared is False
    assert challenge.winner_name == ""


def test_generate_challenge_is_deterministic_for_a_seed():
    first = generate_challenge(1, random.Random(42))
    second = generate_challenge(1, random.Random(42))
    assert first == second


def test_format_challenge_layout():
    assert format_challenge(_sample_challenge()) == (
        "SEC|SEC0001|BID|12.5|ASK|13.25\n"
        "SEC|SEC0002|BID|40|ASK|40.5\n"
        "CHALLENGE_ID:7\n"
        "TARGET:SEC0002\n"
    )


def test_fragment_message_splits_and_rejoins():
    data = b"abcdefg"
    pieces = fragment_message(data, 3)
    assert pieces == [b"abc", b"def", b"g"]
    assert b"".join(pieces) == data


def test_fragment_message_default_size_and_empty():
    data = b"x" * 3000
    pieces = fragment_message(data)
    assert [len(p) for p in pieces] == [1400, 1400, 200]
    assert fragment_message(b"") == []


def test_fragment_message_rejects_non_positive_size():
    with pytest.raises(ValueError):
        fragment_message(b"abc", 0)


def test_parse_order_reads_fields():
    order = parse_order("CHALLENGE_RESPONSE 7 SEC0003 12.5 13.25 alice")
    assert order == Order("CHALLENGE_RESPONSE", 7, "SEC0003", 12.5, 13.25, "alice")


@pytest.mark.parametrize(
    "line",
    ["", "CHALLENGE_RESPONSE 7 SEC0003", "CHALLENGE_RESPONSE x SEC0003 1 2 bob", "CHALLENGE_RESPONSE 7 SEC0003 a 2 bob"],
)
def test_parse_order_rejects_malformed(line):
    with pytest.raises(ValueError):
        parse_order(line)


def test_process_order_records_first_correct_winner():
    board = ChallengeBoard()
    board.publish(_sample_challenge())
    reply = board.process_order("CHALLENGE_RESPONSE 7 SEC0002 40 40.5 alice")
    assert reply == "INCORRECT\n"
    current = board.current()
    assert current.winner_declared is True
    assert current.winner_name == "alice"
    assert current.first_response_time is not None

    board.process_order("CHALLENGE_RESPONSE 7 SEC0002 40 40.5 bob")
    assert board.current().winner_name == "alice"


def test_process_order_accepts_within_tolerance():
    board = ChallengeBoard()
    board.publish(_sample_challenge())
    board.process_order("CHALLENGE_RESPONSE 7 SEC0002 40.0005 40.4995 carol")
    assert board.current().winner_name == "carol"


@pytest.mark.parametrize(
    "line",
    [
        "CHALLENGE_RESPONSE 8 SEC0002 40 40.5 dave",
        "CHALLENGE_RESPONSE 7 SEC0001 12.5 13.25 dave",
        "CHALLENGE_RESPONSE 7 SEC0002 40.01 40.5 dave",
        "CHALLENGE_RESPONSE 7 SEC0002 40 40.6 dave",
        "CHALLENGE_RESPONSE nope",
    ],
)
def test_process_order_rejects_wrong_answers(line):
    board = ChallengeBoard()
    board.publish(_sample_challenge())
    assert board.process_order(line) == "INCORRECT\n"
    assert board.current().winner_declared is False


def test_process_order_ignores_other_headers():
    board = ChallengeBoard()
    board.publish(_sample_challenge())
    assert board.process_order("HELLO 7 SEC0002 40 40.5 eve") is None
    assert board.process_order("   ") is None
    assert board.current().winner_declared is False


def test_process_order_without_challenge_is_incorrect():
    board = ChallengeBoard()
    assert board.current() is None
    assert board.process_order("CHALLENGE_RESPONSE 1 SEC0001 1 2 eve") == "INCORRECT\n"


def test_generated_challenge_round_trips_through_engine_response():
    board = ChallengeBoard()
    for seed in range(20):
        challenge = generate_challenge(seed + 1, random.Random(seed))
        board.publish(challenge)
        response = build_response(format_challenge(challenge), "frank")
        board.process_order(response.rstrip("\n"))
        assert board.current().winner_name == "frank"


def test_broadcast_challenges_publishes_and_sends():
    board = ChallengeBoard()
    sock = _RecordingSocket()
    broadcast_challenges(board, sock, "239.255.0.1", 3001, 0, random.Random(3), 2)
    current = board.current()
    assert current.challenge_id == 2
    assert all(address == ("239.255.0.1", 3001) for _, address in sock.sent)
    payload = b"".join(data for data, _ in sock.sent).decode("ascii")
    assert payload.endswith(format_challenge(current))
    assert payload.count("CHALLENGE_ID:") == 2


def test_broadcast_challenges_reports_send_errors(capsys):
    board = ChallengeBoard()
    broadcast_challenges(board, _RecordingSocket(fail=True), "239.255.0.1", 3001, 0, random.Random(0), 1)
    assert board.current().challenge_id == 1
    assert "UDP send error" in capsys.readouterr().err


def test_order_server_replies_over_tcp():
    board = ChallengeBoard()
    board.publish(_sample_challenge())
    server = make_order_server(board, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address[:2]
        with socket.create_connection((host, port), timeout=5) as client:
            client.sendall(b"IGNORED line\nCHALLENGE_RESPONSE 7 SEC0002 40 40.5 grace\n")
            reader = client.makefile("rb")
            assert reader.readline() == b"INCORRECT\n"
        assert board.current().winner_name == "grace"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)