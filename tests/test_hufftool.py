from pathlib import Path

import huffman as huff
import hufftool


def test_compress_then_decompress_default_names(tmp_path):
    src = tmp_path / "notes.txt"
    data = b"abracadabra " * 40
    src.write_bytes(data)

    assert hufftool.main(["compress", str(src)]) == 0
    packed = tmp_path / "notes.txt.hf"
    assert packed.read_bytes()[:4] == bytes.fromhex("face8201")

    src.unlink()
    assert hufftool.main(["decompress", str(packed)]) == 0
    assert src.read_bytes() == data


def test_explicit_output(tmp_path, capsys):
    src = tmp_path / "in.bin"
    src.write_bytes(bytes(range(256)))
    out = tmp_path / "packed"

    assert hufftool.main(["-d", "compress", str(src), "-o", str(out)]) == 0
    assert "257 leaves" in capsys.readouterr().out

    restored = tmp_path / "restored"
    assert hufftool.main(["decompress", str(out), "--output", str(restored)]) == 0
    assert restored.read_bytes() == bytes(range(256))


def test_bad_input_reports_error(tmp_path, capsys):
    bogus = tmp_path / "bogus.hf"
    bogus.write_bytes(b"not a huffman file")

    assert hufftool.main(["decompress", str(bogus)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: magic:")


def test_missing_input_reports_error(tmp_path, capsys):
    assert hufftool.main(["compress", str(tmp_path / "nope")]) == 1
    assert "error:" in capsys.readouterr().err


def test_default_output_names():
    assert hufftool.default_output(Path("a/b.txt"), "compress") == Path("a/b.txt.hf")
    assert hufftool.default_output(Path("a/b.txt.hf"), "decompress") == Path("a/b.txt")
    assert hufftool.default_output(Path("a/b.bin"), "decompress") == Path("a/b.bin.out")


def test_debug_levels():
    assert hufftool.debug_level(0) == 0
    assert hufftool.debug_level(1) == huff.DEBUG_LOW
    assert hufftool.debug_level(3) == huff.DEBUG_HIGH


def test_corrupt_header_reports_error_without_traceback(tmp_path, capsys):
    bogus = tmp_path / "deep.hf"
    bogus.write_bytes(bytes.fromhex("face8201") + bytes(200))

    assert hufftool.main(["decompress", str(bogus), "-o", str(tmp_path / "out")]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: header:")
    assert "Traceback" not in err


def test_same_input_and_output_is_rejected(tmp_path, capsys):
    src = tmp_path / "keep.txt"
    src.write_bytes(b"do not truncate me")

    assert hufftool.main(["compress", str(src), "-o", str(src)]) == 1
    assert "same file" in capsys.readouterr().err
    assert src.read_bytes() == b"do not truncate me"
