"""Tests for cargo_single.metadata."""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_single.metadata import extract_metadata


def test_extract_metadata_splits_dependencies_and_self_version(project_builder) -> None:
    source = project_builder.source(
        "a.rs",
        """
        // foo = "1.0"
        // self = "2.0"
        // bar = { version = "0.3", features = ["derive"] }
        fn main() {}
        """,
    )

    block = extract_metadata(source)

    assert block.lines == [
        'foo = "1.0"\n',
        'bar = { version = "0.3", features = ["derive"] }\n',
    ]
    assert block.self_version == '"2.0"'
    assert block.render() == 'foo = "1.0"\nbar = { version = "0.3", features = ["derive"] }\n'


def test_extract_metadata_stops_at_first_non_comment_line(project_builder) -> None:
    source = project_builder.source(
        "a.rs",
        """
        // foo = "1.0"

        // bar = "2.0"
        fn main() {}
        """,
    )

    block = extract_metadata(source)

    assert block.lines == ['foo = "1.0"\n']
    assert block.self_version is None


@pytest.mark.parametrize(
    "content",
    [
        "",
        "fn main() {}\n",
        "//foo = \"1.0\"\nfn main() {}\n",
        "use std::env;\n// foo = \"1.0\"\n",
    ],
)
def test_extract_metadata_without_leading_block_is_empty(project_builder, content: str) -> None:
    source = project_builder.root / "a.rs"
    source.write_text(content, encoding="utf-8")

    block = extract_metadata(source)

    assert block.lines == []
    assert block.self_version is None


def test_extract_metadata_last_self_version_wins(project_builder) -> None:
    source = project_builder.source(
        "a.rs",
        """
        // self = "1.0.0"
        // self = "1.1.0"
        fn main() {}
        """,
    )

    block = extract_metadata(source)

    assert block.lines == []
    assert block.self_version == '"1.1.0"'


def test_extract_metadata_accepts_crlf_line_endings(project_builder) -> None:
    source = project_builder.root / "a.rs"
    source.write_bytes(b'// foo = "1.0"\r\n// self = "3.0"\r\nfn main() {}\r\n')

    block = extract_metadata(source)

    assert block.lines == ['foo = "1.0"\n']
    assert block.self_version == '"3.0"'


def test_extract_metadata_propagates_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        extract_metadata(tmp_path / "missing.rs")


def test_extract_metadata_does_not_decode_past_the_block(project_builder) -> None:
    source = project_builder.root / "a.rs"
    source.write_bytes(b'// foo = "1.0"\nconst S: &[u8] = b"\xe9\xff";\n')

    block = extract_metadata(source)

    assert block.lines == ['foo = "1.0"\n']


def test_extract_metadata_rejects_non_utf8_comment_line(project_builder) -> None:
    source = project_builder.root / "a.rs"
    source.write_bytes(b'// foo = "\xe9"\n')

    with pytest.raises(UnicodeDecodeError):
        extract_metadata(source)
