"""Tests for fwingest/parser.py"""

import logging

import pytest

from fwingest.errors import MalformedLineError
from fwingest.parser import parse_line

PREFIX = "2019-01-12T13:56:05-08:00 host kernel: [LAN_IN-4001-A]IN=eth1"


class TestSampleLine:
    def test_synthetic_keys(self, sample_line):
        fields = parse_line(sample_line)
        assert fields["LOGGED_AT"] == "2019-01-12T13:56:05-08:00"
        assert fields["FLOW_TYPE"] == "LAN_LOCAL"
        assert fields["RULE_ID"] == "default"
        assert fields["FW_ACTION"] == "A"
        assert fields["IN"] == "eth0"

    def test_literal_keys(self, sample_line):
        fields = parse_line(sample_line)
        assert fields["OUT"] == ""
        assert fields["SRC"] == "192.168.1.8"
        assert fields["DST"] == "192.168.1.1"
        assert fields["LEN"] == "52"
        assert fields["ID"] == "40048"
        assert fields["PROTO"] == "TCP"
        assert fields["SPT"] == "8080"
        assert fields["DPT"] == "45117"

    def test_flag_tokens_dropped(self, sample_line):
        fields = parse_line(sample_line)
        assert "DF" not in fields
        assert "ACK" not in fields

    def test_host_and_process_discarded(self, sample_line):
        values = parse_line(sample_line).values()
        assert "host" not in values
        assert "kernel:" not in values

    def test_key_order_follows_scan(self, sample_line):
        keys = list(parse_line(sample_line))
        assert keys[:5] == ["LOGGED_AT", "FW_ACTION", "RULE_ID", "FLOW_TYPE", "IN"]
        assert keys[5] == "OUT"

    def test_deterministic(self, sample_line):
        assert parse_line(sample_line) == parse_line(sample_line)


class TestKeyValueTokens:
    def test_value_keeps_later_equals(self):
        fields = parse_line(f"{PREFIX} MAC=aa:bb OPT=a=b")
        assert fields["OPT"] == "a=b"

    def test_last_write_wins(self):
        fields = parse_line(f"{PREFIX} LEN=78 PROTO=UDP LEN=58")
        assert fields["LEN"] == "58"

    def test_literal_in_overrides_bracket(self):
        fields = parse_line(f"{PREFIX} OUT= IN=eth7")
        assert fields["IN"] == "eth7"

    def test_token_without_equals_does_not_fail_line(self):
        fields = parse_line(f"{PREFIX} SRC=10.0.0.1 SYN DST=10.0.0.2")
        assert fields["SRC"] == "10.0.0.1"
        assert fields["DST"] == "10.0.0.2"
        assert "SYN" not in fields

    def test_consecutive_spaces_make_empty_tokens(self):
        fields = parse_line(f"{PREFIX}  SRC=10.0.0.1")
        assert fields["SRC"] == "10.0.0.1"
        assert "" not in fields

    def test_empty_key(self):
        assert parse_line(f"{PREFIX} =x")[""] == "x"

    def test_annotation_only(self):
        fields = parse_line(PREFIX)
        assert set(fields) == {"LOGGED_AT", "FW_ACTION", "RULE_ID", "FLOW_TYPE", "IN"}


class TestMalformedLines:
    @pytest.mark.parametrize(
        "line",
        ["", "one", "one two", "2019-01-12T13:56:05-08:00 host kernel:"],
    )
    def test_fewer_than_four_tokens(self, line):
        with pytest.raises(MalformedLineError):
            parse_line(line)

    def test_martian_line(self):
        line = "2019-01-12T13:56:10-08:00 host kernel: IPv4: martian source 0.0.0.0 from 0.0.0.0, on dev eth0"
        with pytest.raises(MalformedLineError):
            parse_line(line)

    def test_bad_annotation_fails_despite_valid_pairs(self):
        line = "2019-01-12T13:56:05-08:00 host kernel: LAN_IN SRC=10.0.0.1 DST=10.0.0.2"
        with pytest.raises(MalformedLineError):
            parse_line(line)

    def test_leading_space_shifts_tokens(self):
        with pytest.raises(MalformedLineError):
            parse_line(" " + PREFIX)


class TestDiagnostics:
    def test_dropped_token_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="fwingest.parser"):
            parse_line(f"{PREFIX} SYN")
        assert any("SYN" in r.getMessage() for r in caplog.records)

    def test_level_does_not_change_result(self, sample_line, caplog):
        with caplog.at_level(logging.DEBUG, logger="fwingest.parser"):
            verbose = parse_line(sample_line)
        with caplog.at_level(logging.ERROR, logger="fwingest.parser"):
            quiet = parse_line(sample_line)
        assert verbose == quiet
