"""Tests for IR parsing and validation."""

import pytest
from llvmlite import binding as llvm

from irjit.errors import ParseError
from irjit.loader import parse

from conftest import (
    MALFORMED_IR,
    NO_MAIN_IR,
    RETURN_42_IR,
    STRLEN_IR,
    UNVERIFIABLE_IR,
)


def test_parse_text_ir():
    loaded = parse(RETURN_42_IR.encode(), name="answer.ll")
    try:
        assert loaded.format == "text"
        assert loaded.name == "answer.ll"
        assert loaded.defined_functions == {"main"}
        assert not loaded.external_symbols
        assert not loaded.consumed
    finally:
        loaded.dispose()


def test_parse_records_external_declarations():
    ir = STRLEN_IR + "@counter = external global i32\n"
    loaded = parse(ir.encode())
    try:
        assert loaded.external_functions == {"strlen"}
        assert loaded.external_globals == {"counter"}
        assert loaded.external_symbols == {"strlen", "counter"}
    finally:
        loaded.dispose()


def test_intrinsics_are_not_external_symbols():
    ir = """\
declare i32 @llvm.abs.i32(i32, i1)

define i32 @main(i32 %argc, ptr %argv) {
entry:
  %r = call i32 @llvm.abs.i32(i32 -5, i1 false)
  ret i32 %r
}
"""
    loaded = parse(ir.encode())
    try:
        assert not loaded.external_symbols
    finally:
        loaded.dispose()


def test_parse_bitcode():
    """Bitcode is detected by its magic and parsed as such."""
    bitcode = llvm.parse_assembly(NO_MAIN_IR).as_bitcode()
    loaded = parse(bitcode, name="helper.bc")
    try:
        assert loaded.format == "bitcode"
        assert loaded.defined_functions == {"helper"}
    finally:
        loaded.dispose()


def test_malformed_ir_has_location():
    with pytest.raises(ParseError) as exc_info:
        parse(MALFORMED_IR.encode(), name="bad.ll")
    err = exc_info.value
    assert err.line == 3
    assert err.column is not None
    assert "missing" in err.message
    assert str(err).startswith("bad.ll:3:")


def test_garbage_bytes_are_a_parse_error():
    with pytest.raises(ParseError):
        parse(b"this is not llvm ir at all")


def test_truncated_bitcode_is_a_parse_error():
    bitcode = llvm.parse_assembly(NO_MAIN_IR).as_bitcode()
    with pytest.raises(ParseError):
        parse(bitcode[: len(bitcode) // 2])


def test_verifier_failure_is_a_parse_error():
    with pytest.raises(ParseError, match="verification failed"):
        parse(UNVERIFIABLE_IR.encode())


@pytest.mark.parametrize("data", [b"", b"   \n\t"])
def test_empty_input(data):
    with pytest.raises(ParseError, match="empty"):
        parse(data)


def test_non_utf8_text():
    with pytest.raises(ParseError, match="UTF-8"):
        parse(b"define i32 @main() \xff\xfe")


def test_embedded_nul_in_text_ir():
    """Text after a NUL would never reach LLVM, so the buffer is rejected."""
    data = RETURN_42_IR.encode() + b"\x00garbage that must not be ignored"
    with pytest.raises(ParseError, match="NUL byte at offset"):
        parse(data)


def test_each_parse_gets_its_own_context():
    a = parse(RETURN_42_IR.encode())
    b = parse(RETURN_42_IR.encode())
    try:
        assert a.context is not b.context
    finally:
        a.dispose()
        b.dispose()


def test_dispose_is_idempotent():
    loaded = parse(RETURN_42_IR.encode())
    loaded.dispose()
    loaded.dispose()
    assert loaded.consumed
