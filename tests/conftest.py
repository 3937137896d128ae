"""Pytest configuration and shared fixtures."""
import threading

import pytest
from scapy.all import IP, UDP, Ether, Raw

from interfaces import NetworkEndpoint
from state import InputBuffer, MessageLog


class FakeSocket:
    """In-memory stand-in for a UDP socket."""

    def __init__(self, family, type_, port=40000, send_error=None, connect_error=None):
        self.family = family
        self.type = type_
        self.port = port
        self.send_error = send_error
        self.connect_error = connect_error
        self.options = []
        self.peer = None
        self.sent = []
        self.closed = False

    def setsockopt(self, level, option, value):
        self.options.append((level, option, value))

    def connect(self, address):
        if self.connect_error is not None:
            raise self.connect_error
        self.peer = address

    def getsockname(self):
        return ("192.168.1.42", self.port)

    def send(self, data):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)
        return len(data)

    def close(self):
        self.closed = True


class FakeScreen:
    """Character grid implementing the same interface the renderer uses on curses."""

    def __init__(self, width=40, height=10):
        self.width = width
        self.height = height
        self.lock = threading.Lock()
        self.shown = 0
        self.clear()

    def size(self):
        return self.width, self.height

    def clear(self):
        self.cells = [[(" ", None) for _ in range(self.width)] for _ in range(self.height)]

    def put(self, x, y, text, style=None):
        for offset, char in enumerate(text):
            if 0 <= y < self.height and 0 <= x + offset < self.width:
                self.cells[y][x + offset] = (char, style)

    def show(self):
        self.shown += 1

    def row(self, y):
        return "".join(char for char, _ in self.cells[y])

    def style_at(self, x, y):
        return self.cells[y][x][1]


@pytest.fixture
def endpoint():
    """Return an endpoint on a typical /24 home network."""
    return NetworkEndpoint(
        interface="eth0",
        ip="192.168.1.42",
        capture_device="eth0",
        broadcast="192.168.1.255",
    )


@pytest.fixture
def messages():
    return MessageLog()


@pytest.fixture
def input_buffer():
    return InputBuffer()


@pytest.fixture
def socket_factory():
    """Return a factory that hands out FakeSockets with sequential ephemeral ports."""
    created = []

    def factory(family, type_, **kwargs):
        sock = FakeSocket(family, type_, port=40000 + len(created), **kwargs)
        created.append(sock)
        return sock

    factory.created = created
    return factory


@pytest.fixture
def fake_screen():
    return FakeScreen()


def make_packet(payload, sport, dport=9000, src="192.168.1.7"):
    """Build a captured chat datagram in memory."""
    return (
        Ether(src="02:00:00:00:00:07", dst="ff:ff:ff:ff:ff:ff")
        / IP(src=src, dst="192.168.1.255")
        / UDP(sport=sport, dport=dport)
        / Raw(load=payload)
    )
