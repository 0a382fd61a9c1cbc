"""Tests for the scalar accessor definitions."""

from typed_views.definition import (
    MISSING,
    BytesDefinition,
    Integer64Definition,
    ScalarDefinition,
    quote_text,
)
from typed_views.raw import RawValue
from typed_views.schema import PRIMITIVES


class TestQuoteText:
    """Tests for quote_text."""

    def test_plain(self):
        assert quote_text("abc") == '"abc"'

    def test_escapes(self):
        """Quotes, backslashes and control characters are escaped."""
        assert quote_text('a"b') == '"a\\"b"'
        assert quote_text("a\\b") == '"a\\\\b"'
        assert quote_text("line\nnext\t") == '"line\\nnext\\t"'

    def test_bytes(self):
        """Non-printable bytes are hex-escaped."""
        assert quote_text(b"\x00a\xff") == '"\\0a\\xff"'


class TestScalarDefinition:
    """Tests for ScalarDefinition and its subclasses."""

    def test_instantiate_is_none(self):
        """Scalars have no wrapper object."""
        assert ScalarDefinition("int").instantiate() is None

    def test_wrap_returns_value(self):
        """Wrapping a scalar returns the Python value."""
        raw = RawValue(PRIMITIVES["int"])
        raw.set(42)
        assert ScalarDefinition("int").wrap(None, raw) == 42

    def test_fill_from(self):
        """fill_from stores a value in the raw value."""
        raw = RawValue(PRIMITIVES["boolean"])
        ScalarDefinition("boolean").fill_from(raw, True)
        assert raw.get() is True

    def test_render(self):
        """null and booleans have literal names."""
        definition = ScalarDefinition("int")
        assert definition.render(None) == "null"
        assert definition.render(True) == "true"
        assert definition.render(False) == "false"
        assert definition.render(7) == "7"
        assert definition.render(1.5) == "1.5"
        assert definition.render("red") == "red"

    def test_bytes_render(self):
        """Strings and bytes render quoted."""
        definition = BytesDefinition("string")
        assert definition.render("x") == '"x"'
        assert definition.render(b"ab") == '"ab"'

    def test_long_render(self):
        """64-bit integers render as plain digits."""
        definition = Integer64Definition("long")
        assert definition.render(1 << 40) == "1099511627776"
        assert definition.render(-5) == "-5"

    def test_repr(self):
        assert repr(Integer64Definition("long")) == "<Integer64Definition long>"


class TestMissing:
    """Tests for the MISSING marker."""

    def test_is_falsy(self):
        assert not MISSING
        assert repr(MISSING) == "MISSING"


class TestQuoteTextControlCharacters:
    """Tests for escaping control characters in text."""

    def test_text_control_characters(self):
        assert quote_text("a\x01b") == '"a\\x01b"'
        assert quote_text("\x1b[0m") == '"\\x1b[0m"'
        assert quote_text("del\x7f") == '"del\\x7f"'

    def test_text_keeps_non_ascii(self):
        assert quote_text("café") == '"café"'

    def test_bytes_and_text_agree(self):
        assert quote_text("\x02") == quote_text(b"\x02")
