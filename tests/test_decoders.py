from __future__ import annotations

import unittest
from io import BytesIO
from unittest.mock import Mock

from mimetree.decoders import Base64Decoder, QuotedPrintableDecoder, decode_body
from mimetree.diagnostics import DiagnosticKind, Diagnostics
from mimetree.exceptions import DecodeError, TransferEncodingError


class TestBase64Decoder(unittest.TestCase):
    # Note: base64('foobar') == 'Zm9vYmFy'
    def setUp(self) -> None:
        self.f = BytesIO()
        self.d = Base64Decoder(self.f)

    def assert_data(self, data: bytes, finalize: bool = True) -> None:
        if finalize:
            self.d.finalize()

        self.f.seek(0)
        self.assertEqual(self.f.read(), data)
        self.f.seek(0)
        self.f.truncate()

    def test_simple(self) -> None:
        self.d.write(b"Zm9vYmFy")
        self.assert_data(b"foobar")

    def test_bad(self) -> None:
        with self.assertRaises(DecodeError):
            self.d.write(b"Zm9v!mFy")

    def test_split_properly(self) -> None:
        self.d.write(b"Zm9v")
        self.d.write(b"YmFy")
        self.assert_data(b"foobar")

    def test_bad_split(self) -> None:
        buff = b"Zm9v"
        for i in range(1, 4):
            first, second = buff[:i], buff[i:]

            self.setUp()
            self.d.write(first)
            self.d.write(second)
            self.assert_data(b"foo")

    def test_line_breaks_are_ignored(self) -> None:
        self.d.write(b"Zm9v\r\nYmFy\r\n")
        self.assert_data(b"foobar")

    def test_line_break_inside_quantum(self) -> None:
        self.d.write(b"Zm9vY")
        self.d.write(b"\r\n mFy")
        self.assert_data(b"foobar")

    def test_write_returns_input_length(self) -> None:
        self.assertEqual(self.d.write(b"Zm9v\r\n"), 6)

    def test_close_and_finalize(self) -> None:
        parser = Mock()
        f = Base64Decoder(parser)

        f.finalize()
        parser.finalize.assert_called_once_with()

        f.close()
        parser.close.assert_called_once_with()

    def test_bad_length(self) -> None:
        self.d.write(b"Zm9vYmF")  # missing ending 'y'

        with self.assertRaises(DecodeError):
            self.d.finalize()


class TestQuotedPrintableDecoder(unittest.TestCase):
    def setUp(self) -> None:
        self.f = BytesIO()
        self.d = QuotedPrintableDecoder(self.f)

    def assert_data(self, data: bytes, finalize: bool = True) -> None:
        if finalize:
            self.d.finalize()

        self.f.seek(0)
        self.assertEqual(self.f.read(), data)
        self.f.seek(0)
        self.f.truncate()

    def test_simple(self) -> None:
        self.d.write(b"foobar")
        self.assert_data(b"foobar")

    def test_with_escape(self) -> None:
        self.d.write(b"foo=3Dbar")
        self.assert_data(b"foo=bar")

    def test_with_newline_escape(self) -> None:
        self.d.write(b"foo=\r\nbar")
        self.assert_data(b"foobar")

    def test_with_split_escape(self) -> None:
        self.d.write(b"foo=3")
        self.d.write(b"Dbar")
        self.assert_data(b"foo=bar")

    def test_with_split_newline_escape(self) -> None:
        self.d.write(b"foo=\r")
        self.d.write(b"\nbar")
        self.assert_data(b"foobar")

    def test_escape_before_line_break(self) -> None:
        self.d.write(b"Caf=E9\r\n")
        self.assert_data(b"Caf\xe9\r\n")

    def test_close_and_finalize(self) -> None:
        parser = Mock()
        f = QuotedPrintableDecoder(parser)

        f.finalize()
        parser.finalize.assert_called_once_with()

        f.close()
        parser.close.assert_called_once_with()

    def test_not_aligned(self) -> None:
        self.d.write(b"=3AX")
        self.assert_data(b":X")

        self.d.write(b"=3")
        self.d.write(b"AX")
        self.assert_data(b":X")


class TestDecodeBody(unittest.TestCase):
    def test_identity_encodings(self) -> None:
        for name in (None, "7bit", "8bit", "binary", " BINARY ", ""):
            self.assertEqual(decode_body(name, b"=41 raw"), b"=41 raw")
            self.assertEqual(decode_body(name, "=41 raw"), "=41 raw")

    def test_base64_bytes(self) -> None:
        self.assertEqual(decode_body("base64", b"SGVsbG8sIHdvcmxkIQ=="), b"Hello, world!")

    def test_base64_text(self) -> None:
        self.assertEqual(decode_body("Base64", "SGVsbG8sIHdvcmxkIQ=="), "Hello, world!")

    def test_quoted_printable(self) -> None:
        self.assertEqual(decode_body("quoted-printable", b"Caf=E9"), b"Caf\xe9")
        self.assertEqual(decode_body("Quoted-Printable", "Caf=E9"), "Caf\xe9")

    def test_unknown_encoding_is_identity(self) -> None:
        d = Diagnostics()
        self.assertEqual(decode_body("x-uuencode", b"begin 644", diagnostics=d), b"begin 644")
        self.assertEqual(d.kinds(), [DiagnosticKind.UNKNOWN_TRANSFER_ENCODING])

    def test_unknown_encoding_strict(self) -> None:
        with self.assertRaises(TransferEncodingError):
            decode_body("x-uuencode", b"begin 644", {"ERROR_ON_BAD_CTE": True})

    def test_bad_data_is_left_alone(self) -> None:
        d = Diagnostics()
        self.assertEqual(decode_body("base64", b"Zm9vYmF", diagnostics=d), b"Zm9vYmF")
        self.assertEqual(d.kinds(), [DiagnosticKind.BAD_TRANSFER_ENCODING])

    def test_bad_data_strict(self) -> None:
        with self.assertRaises(DecodeError):
            decode_body("base64", b"Zm9vYmF", {"ERROR_ON_BAD_ENCODING": True})

    def test_text_outside_latin1(self) -> None:
        d = Diagnostics()
        self.assertEqual(decode_body("base64", "☃", diagnostics=d), "☃")
        self.assertIn(DiagnosticKind.BAD_TRANSFER_ENCODING, d)
