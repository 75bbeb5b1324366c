from __future__ import annotations

import os
from typing import TYPE_CHECKING

import yaml

from mimetree.types import LineMode

if TYPE_CHECKING:
    from typing import Any, TypedDict

    from mimetree.types import Body, MimeNode

    class MimeFixture(TypedDict):
        name: str
        data: bytes
        mode: LineMode
        expected: dict[str, Any]
        diagnostics: list[str]


curr_dir = os.path.abspath(os.path.dirname(__file__))
mime_tests_dir = os.path.join(curr_dir, "test_data", "mime")


def as_text(body: Body) -> str:
    if isinstance(body, bytes):
        return body.decode("latin-1")
    return body


def load_mime_fixtures() -> list[MimeFixture]:
    """Load every ``.eml`` message in the test data directory together with
    the ``.yaml`` file describing the tree it should parse into.
    """
    fixtures: list[MimeFixture] = []
    for f in sorted(os.listdir(mime_tests_dir)):
        fname, ext = os.path.splitext(f)
        if ext != ".eml":
            continue

        yaml_file = os.path.join(mime_tests_dir, fname + ".yaml")
        if not os.path.exists(yaml_file):
            continue

        with open(os.path.join(mime_tests_dir, f), "rb") as fh:
            data = fh.read()
        with open(yaml_file, "rb") as fy:
            yaml_data = yaml.safe_load(fy)

        fixtures.append(
            {
                "name": fname,
                "data": data,
                "mode": LineMode.LF if yaml_data.get("mode") == "lf" else LineMode.CRLF,
                "expected": yaml_data["expected"],
                "diagnostics": yaml_data.get("diagnostics", []),
            }
        )
    return fixtures


def assert_tree_matches(node: MimeNode, expected: dict[str, Any], path: str = "root") -> None:
    """Check ``node`` against a YAML description. Only the keys present in
    ``expected`` are compared.
    """
    assert node.media_type.mime_type == expected["type"], path

    if "params" in expected:
        assert dict(node.media_type.params) == expected["params"], path
    if "headers" in expected:
        assert [list(h) for h in node.headers] == expected["headers"], path
    if "disposition" in expected:
        assert node.disposition is not None, path
        assert node.disposition.type_name == expected["disposition"], path
    if "filename" in expected:
        assert node.filename == expected["filename"], path

    if "body" in expected:
        assert node.is_leaf, path
        assert node.body is not None
        assert as_text(node.body) == expected["body"], path
    if "children" in expected:
        assert not node.is_leaf, path
        assert node.children is not None
        assert len(node.children) == len(expected["children"]), path
        for i, (child, child_expected) in enumerate(zip(node.children, expected["children"])):
            assert_tree_matches(child, child_expected, f"{path}.{i}")
