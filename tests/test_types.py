from __future__ import annotations

import unittest

from mimetree.types import (
    DEFAULT_MEDIA_TYPE,
    Disposition,
    DispositionKind,
    DispositionParam,
    DispositionParamKind,
    HeaderList,
    LineMode,
    MediaKind,
    MediaType,
    MimeNode,
    Params,
)


def leaf(body: str | bytes, **kwargs: object) -> MimeNode:
    return MimeNode(DEFAULT_MEDIA_TYPE, body=body, **kwargs)  # type: ignore[arg-type]


class TestHeaderList(unittest.TestCase):
    def setUp(self) -> None:
        self.h = HeaderList([("Received", "a"), ("Subject", "hi"), ("RECEIVED", "b")])

    def test_lookup_is_case_insensitive(self) -> None:
        self.assertEqual(self.h.get("subject"), "hi")
        self.assertEqual(self.h.get("received"), "a")
        self.assertIsNone(self.h.get("to"))
        self.assertEqual(self.h.get("to", "x"), "x")

    def test_get_all(self) -> None:
        self.assertEqual(self.h.get_all("Received"), ["a", "b"])
        self.assertEqual(self.h.get_all("cc"), [])

    def test_names_keep_case(self) -> None:
        self.assertEqual(self.h.names(), ["Received", "Subject", "RECEIVED"])

    def test_is_a_tuple(self) -> None:
        self.assertEqual(self.h[1], ("Subject", "hi"))
        self.assertEqual(self.h, HeaderList(list(self.h)))
        self.assertEqual(repr(HeaderList([("A", "1")])), "HeaderList([('A', '1')])")


class TestMediaType(unittest.TestCase):
    def test_properties(self) -> None:
        t = MediaType(MediaKind.TEXT, "HTML", Params([("charset", "utf-8"), ("name", "x.html")]))
        self.assertEqual(t.major, "text")
        self.assertEqual(t.mime_type, "text/html")
        self.assertEqual(t.charset, "utf-8")
        self.assertEqual(t.param("NAME"), "x.html")
        self.assertIsNone(t.boundary)
        self.assertFalse(t.is_multipart)
        self.assertFalse(t.is_message)

    def test_other_major(self) -> None:
        t = MediaType(MediaKind.OTHER, "x", raw_major="Chemical")
        self.assertEqual(t.major, "Chemical")
        self.assertEqual(str(t), "Chemical/x")

    def test_default(self) -> None:
        self.assertEqual(str(DEFAULT_MEDIA_TYPE), "text/plain; charset=us-ascii")


class TestDisposition(unittest.TestCase):
    def test_accessors(self) -> None:
        d = Disposition(
            DispositionKind.ATTACHMENT,
            (
                DispositionParam(DispositionParamKind.FILENAME, "a.txt", "filename"),
                DispositionParam(DispositionParamKind.SIZE, "12", "size"),
            ),
        )
        self.assertEqual(d.type_name, "attachment")
        self.assertEqual(d.filename, "a.txt")
        self.assertEqual(d.size, "12")
        self.assertIsNone(d.name)
        self.assertEqual(d.get(DispositionParamKind.READ_DATE, "never"), "never")
        self.assertEqual(str(d), "attachment; filename=a.txt; size=12")


class TestMimeNode(unittest.TestCase):
    def test_needs_exactly_one_of_body_or_children(self) -> None:
        with self.assertRaises(ValueError):
            MimeNode(DEFAULT_MEDIA_TYPE)
        with self.assertRaises(ValueError):
            MimeNode(DEFAULT_MEDIA_TYPE, body=b"", children=())

    def test_empty_body_is_a_leaf(self) -> None:
        node = leaf(b"")
        self.assertTrue(node.is_leaf)
        self.assertEqual(node.content, b"")

    def test_children_and_headers_are_coerced(self) -> None:
        node = MimeNode(DEFAULT_MEDIA_TYPE, children=[leaf("a")], headers=[("A", "1")])  # type: ignore[arg-type]
        self.assertIsInstance(node.children, tuple)
        self.assertIsInstance(node.headers, HeaderList)
        self.assertFalse(node.is_leaf)
        self.assertEqual(node.content, (leaf("a"),))

    def test_walk_is_depth_first(self) -> None:
        a, b, c = leaf("a"), leaf("b"), leaf("c")
        inner = MimeNode(DEFAULT_MEDIA_TYPE, children=(a, b))
        root = MimeNode(DEFAULT_MEDIA_TYPE, children=(inner, c))
        self.assertEqual(list(root.walk()), [root, inner, a, b, c])
        self.assertEqual([n.body for n in root.leaves()], ["a", "b", "c"])

    def test_filename_falls_back_to_name_param(self) -> None:
        t = MediaType(MediaKind.IMAGE, "png", Params([("name", "pic.png")]))
        self.assertEqual(MimeNode(t, body=b"").filename, "pic.png")

        d = Disposition(DispositionKind.INLINE, (DispositionParam(DispositionParamKind.FILENAME, "b.png", "filename"),))
        self.assertEqual(MimeNode(t, d, body=b"").filename, "b.png")

    def test_attachments(self) -> None:
        attached = leaf(b"1", disposition=Disposition(DispositionKind.ATTACHMENT))
        named = MimeNode(MediaType(MediaKind.IMAGE, "png", Params([("name", "p.png")])), body=b"2")
        inline = leaf(b"3", disposition=Disposition(DispositionKind.INLINE))
        root = MimeNode(DEFAULT_MEDIA_TYPE, children=(inline, attached, named))
        self.assertEqual(root.attachments(), [attached, named])

    def test_map_bodies(self) -> None:
        headers = HeaderList([("X", "y")])
        root = MimeNode(DEFAULT_MEDIA_TYPE, children=(leaf(b"a"), leaf(b"b")), headers=headers)
        upper = root.map_bodies(lambda body: body.upper())
        self.assertEqual([n.body for n in upper.leaves()], [b"A", b"B"])
        self.assertEqual(upper.headers, root.headers)
        self.assertEqual([n.body for n in root.leaves()], [b"a", b"b"])

    def test_equality(self) -> None:
        self.assertEqual(leaf("a"), leaf("a"))
        self.assertNotEqual(leaf("a"), leaf(b"a"))


class TestLineMode(unittest.TestCase):
    def test_terminator(self) -> None:
        self.assertEqual(LineMode.CRLF.terminator, "\r\n")
        self.assertEqual(LineMode.LF.terminator, "\n")
