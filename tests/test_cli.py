import io
import sys

import pytest

from idrefstrip import TransformReport, cli
from idrefstrip.errors import InvariantViolation


@pytest.fixture(autouse=True)
def no_env(monkeypatch):
    for key in ("IDREFSTRIP_ATTRIBUTE", "IDREFSTRIP_CHUNK_SIZE", "IDREFSTRIP_HUGE_TREE", "IDREFSTRIP_ENCODING"):
        monkeypatch.delenv(key, raising=False)


def test_writes_output_file(tmp_path, capsys):
    src = tmp_path / "in.xml"
    src.write_bytes(b'<root><item IDREF="ref-1">X</item><item id="2">Y</item></root>')
    dst = tmp_path / "out" / "result.xml"

    code = cli.main(["--in", str(src), "--out", str(dst), "--stats"])

    assert code == cli.EXIT_OK
    assert dst.read_bytes() == b'<root><item IDREF="ref-1"></item><item id="2">Y</item></root>'
    out = capsys.readouterr().out
    assert "OK: wrote XML" in out
    assert "STATS: elements=3 flagged=1" in out


def test_custom_attribute_flag(tmp_path):
    src = tmp_path / "in.xml"
    src.write_bytes(b'<r><a linkend="x">t</a><b IDREF="y">u</b></r>')
    dst = tmp_path / "out.xml"

    assert cli.main(["--in", str(src), "--out", str(dst), "--attr", "linkend"]) == cli.EXIT_OK
    assert dst.read_bytes() == b'<r><a linkend="x"></a><b IDREF="y">u</b></r>'


def test_malformed_input_exit_code(tmp_path, capsys):
    src = tmp_path / "in.xml"
    src.write_bytes(b"<root><a></root>")

    code = cli.main(["--in", str(src), "--out", str(tmp_path / "out.xml")])

    assert code == cli.EXIT_MALFORMED
    assert "malformed input" in capsys.readouterr().err


def test_missing_input_exit_code(tmp_path):
    code = cli.main(["--in", str(tmp_path / "nope.xml"), "--out", str(tmp_path / "out.xml")])
    assert code == cli.EXIT_USAGE


def test_bad_chunk_size(tmp_path):
    src = tmp_path / "in.xml"
    src.write_bytes(b"<r/>")
    code = cli.main(["--in", str(src), "--out", str(tmp_path / "out.xml"), "--chunk-size", "0"])
    assert code == cli.EXIT_USAGE


def test_missing_required_args():
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2


def test_stdin_to_stdout(monkeypatch):
    stdin = io.TextIOWrapper(io.BytesIO(b'<root><a IDREF="1">x</a><b>y</b></root>'))
    stdout = io.TextIOWrapper(io.BytesIO())
    stderr = io.StringIO()
    monkeypatch.setattr(sys, "stdin", stdin)
    monkeypatch.setattr(sys, "stdout", stdout)
    monkeypatch.setattr(sys, "stderr", stderr)

    code = cli.main(["--in", "-", "--out", "-", "--stats"])

    assert code == cli.EXIT_OK
    stdout.flush()
    # status lines must not end up inside the document
    assert stdout.buffer.getvalue() == b'<root><a IDREF="1"></a><b>y</b></root>'
    assert "OK: wrote XML -> -" in stderr.getvalue()
    assert "STATS:" in stderr.getvalue()


def test_unwritable_output_exit_code(tmp_path, capsys):
    src = tmp_path / "in.xml"
    src.write_bytes(b"<r/>")
    blocker = tmp_path / "plain_file"
    blocker.write_text("not a directory", encoding="utf-8")

    code = cli.main(["--in", str(src), "--out", str(blocker / "sub" / "out.xml")])

    assert code == cli.EXIT_WRITE
    assert "cannot open output" in capsys.readouterr().err


def test_unreadable_input_exit_code(tmp_path):
    # a directory exists but cannot be opened as a file
    code = cli.main(["--in", str(tmp_path), "--out", str(tmp_path / "out.xml")])
    assert code == cli.EXIT_USAGE


def test_invariant_violation_exit_code(tmp_path, monkeypatch, capsys):
    src = tmp_path / "in.xml"
    src.write_bytes(b"<r/>")

    def broken(source, sink, config=None):
        raise InvariantViolation("end tag </r> with no open element")

    monkeypatch.setattr(cli, "remove_idref_values", broken)

    code = cli.main(["--in", str(src), "--out", str(tmp_path / "out.xml")])

    assert code == cli.EXIT_INTERNAL
    assert "internal" in capsys.readouterr().err


def test_huge_tree_can_be_turned_off_over_env(tmp_path, monkeypatch):
    src = tmp_path / "in.xml"
    src.write_bytes(b"<r/>")
    monkeypatch.setenv("IDREFSTRIP_HUGE_TREE", "true")
    seen = []

    def record(source, sink, config=None):
        seen.append(config)
        return TransformReport()

    monkeypatch.setattr(cli, "remove_idref_values", record)

    assert cli.main(["--in", str(src), "--out", str(tmp_path / "out.xml"), "--no-huge-tree"]) == cli.EXIT_OK
    assert seen[0].parser.huge_tree is False


def test_huge_tree_on_by_default(tmp_path, monkeypatch):
    src = tmp_path / "in.xml"
    src.write_bytes(b"<r/>")
    seen = []

    def record(source, sink, config=None):
        seen.append(config)
        return TransformReport()

    monkeypatch.setattr(cli, "remove_idref_values", record)

    assert cli.main(["--in", str(src), "--out", str(tmp_path / "out.xml")]) == cli.EXIT_OK
    assert seen[0].parser.huge_tree is True
