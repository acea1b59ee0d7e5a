"""Shared pytest fixtures for the fwingest test suite."""

import os

import pytest

from fwingest.storage import FlowStore

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
SAMPLE_LOG = os.path.join(DATA_DIR, "firewall.log")

SAMPLE_LINE = (
    "2019-01-12T13:56:05-08:00 host kernel: [LAN_LOCAL-default-A]IN=eth0 OUT= "
    "MAC=00:0d:b9:4a:6b:1c:b8:27:eb:5a:9e:e1:08:00 SRC=192.168.1.8 DST=192.168.1.1 "
    "LEN=52 TOS=0x00 PREC=0x00 TTL=64 ID=40048 DF PROTO=TCP SPT=8080 DPT=45117 "
    "WINDOW=2048 RES=0x00 ACK URGP=0"
)


@pytest.fixture
def sample_line() -> str:
    return SAMPLE_LINE


@pytest.fixture
def sample_log() -> str:
    """Path to a small log with good, malformed, blank and unconvertible lines."""
    return SAMPLE_LOG


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'flows.db'}"


@pytest.fixture
def store(db_url):
    """An initialized FlowStore on a fresh SQLite file."""
    s = FlowStore(db_url)
    s.init_schema()
    yield s
    s.close()
