from __future__ import annotations

import dataclasses

import pytest

from cef_filter.core.decoder import (
    MalformedHeaderError,
    decode_cef,
    parse_cef,
    parse_extensions,
    split_header,
    split_syslog_version,
)
from cef_filter.core.models import ErrorKind


def test_parse_cef_sample(sample_cef: str) -> None:
    record = parse_cef(sample_cef)
    assert record.version == "0"
    assert record.vendor == "Figgity Foo Bar Inc."
    assert record.product == "ThingyThang"
    assert record.device_version == "1.0.0"
    assert record.signature_id == "Firewall"
    assert record.name == "Something Bad Happened"
    assert record.syslog_prefix == "CEF:"
    assert record.severity == "Informative"
    assert record.extensions == {"foo": "bar", "baz": "ah Hellz Nah"}


def test_as_dict_field_names(sample_cef: str) -> None:
    assert parse_cef(sample_cef).as_dict() == {
        "cef_version": "0",
        "cef_vendor": "Figgity Foo Bar Inc.",
        "cef_product": "ThingyThang",
        "cef_device_version": "1.0.0",
        "cef_sigid": "Firewall",
        "cef_name": "Something Bad Happened",
        "cef_severity": "Informative",
        "cef_syslog": "CEF:",
        "cef_ext": {"foo": "bar", "baz": "ah Hellz Nah"},
    }


def test_as_dict_omits_absent_fields() -> None:
    d = parse_cef("CEF:0|a|b|c|d|e|f").as_dict()
    assert "cef_syslog" not in d
    assert "cef_ext" not in d


def test_record_is_immutable(sample_cef: str) -> None:
    record = parse_cef(sample_cef)
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.version = "1"  # type: ignore[misc]


def test_split_header_round_trip() -> None:
    tokens = ["CEF:0", "Vendor", "Product", "2.1", "42", "Name", "3"]
    header, remainder = split_header("|".join(tokens) + "|a=b")
    assert header == tokens
    assert "|".join(header) == "|".join(tokens)
    assert remainder == "a=b"


def test_escaped_pipe_is_not_a_delimiter() -> None:
    header, remainder = split_header(r"CEF:0|A\|B|C|D|E|F|G|ext=1")
    assert header[1] == r"A\|B"
    assert header[2:] == ["C", "D", "E", "F", "G"]
    assert remainder == "ext=1"


def test_escaped_pipe_in_first_token_keeps_token_count() -> None:
    header, remainder = split_header(r"A\|B|C|D|E|F|G|H|ext=1")
    assert header[0] == r"A\|B"
    assert header[6] == "H"
    assert remainder == "ext=1"


def test_remainder_keeps_later_pipes() -> None:
    record = parse_cef("CEF:0|a|b|c|d|e|f|msg=x|y z=1")
    assert record.extensions == {"msg": "x|y", "z": "1"}


def test_seven_tokens_without_remainder() -> None:
    header, remainder = split_header("CEF:0|a|b|c|d|e|f")
    assert header[-1] == "f"
    assert remainder is None
    assert parse_cef("CEF:0|a|b|c|d|e|f").extensions is None


def test_fewer_than_seven_tokens_is_malformed() -> None:
    with pytest.raises(MalformedHeaderError):
        split_header("CEF:0|a|b|c")


def test_decode_cef_returns_failure_for_malformed_header() -> None:
    result = decode_cef("CEF:0|a|b|c")
    assert not result.ok
    assert result.record is None
    assert result.failure is not None
    assert result.failure.kind is ErrorKind.MALFORMED_HEADER


def test_decode_cef_success(sample_cef: str) -> None:
    result = decode_cef(sample_cef)
    assert result.ok
    assert result.failure is None
    assert result.record.vendor == "Figgity Foo Bar Inc."


def test_quoted_line_is_stripped() -> None:
    record = parse_cef('"CEF:0|a|b|c|d|e|f|k=v"')
    assert record.version == "0"
    assert record.extensions == {"k": "v"}


def test_quoted_line_always_drops_last_character() -> None:
    record = parse_cef('"CEF:0|a|b|c|d|e|f|k=value')
    assert record.extensions == {"k": "valu"}


def test_syslog_prefix_split_on_last_space() -> None:
    assert split_syslog_version("Jan 18 11:07:53 host CEF:0") == ("Jan 18 11:07:53 host", "0")


def test_version_without_space_has_no_syslog_prefix() -> None:
    assert split_syslog_version("CEF:1") == (None, "1")
    assert split_syslog_version("0") == (None, "0")


def test_cef_marker_only_stripped_at_start() -> None:
    assert split_syslog_version("host 1CEF:") == ("host", "1CEF:")


def test_bare_cef_marker_gives_empty_version() -> None:
    assert split_syslog_version("CEF:") == (None, "")
    assert parse_cef("CEF:|a|b|c|d|e|f").version == ""


def test_extension_values_may_contain_equals() -> None:
    assert parse_extensions("url=http://x/?a=b c=1") == {"url": "http://x/?a=b", "c": "1"}


def test_extension_keys_allow_dots() -> None:
    assert parse_extensions("cs1.label=x ad.foo=y z") == {"cs1.label": "x", "ad.foo": "y z"}


def test_non_word_key_does_not_start_new_pair() -> None:
    assert parse_extensions("msg=hello x-y=z") == {"msg": "hello x-y=z"}


def test_non_ascii_key_does_not_start_new_pair() -> None:
    assert parse_extensions("msg=a ключ=b") == {"msg": "a ключ=b"}


def test_leading_fragment_without_equals_maps_to_empty_string() -> None:
    assert parse_extensions("junk a=b") == {"junk": "", "a": "b"}


def test_trailing_key_without_value_maps_to_empty_string() -> None:
    assert parse_extensions("foo=bar baz=") == {"foo": "bar", "baz": ""}
    assert parse_extensions("foo=") == {"foo": ""}


def test_duplicate_keys_last_wins() -> None:
    ext = parse_extensions("a=1 b=2 a=3")
    assert ext == {"a": "3", "b": "2"}
    assert list(ext) == ["a", "b"]


def test_extension_block_is_trimmed() -> None:
    assert parse_extensions("  a=1 b=2  ") == {"a": "1", "b": "2"}


def test_no_equals_means_no_extensions() -> None:
    assert parse_extensions("just some text") is None
    assert parse_extensions(None) is None
    assert parse_cef("CEF:0|a|b|c|d|e|f|no pairs here").extensions is None
