import json

from apkpack.__main__ import main
from apkpack.reader import list_apk
from conftest import make_apk


def test_no_argument_prints_usage(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().err


def test_unpack_and_pack(apk_file, tmp_path, capsys, textures):
    assert main([str(apk_file)]) == 0
    out_dir = tmp_path / "textures"
    assert (out_dir / "tex1.dds").read_bytes() == textures[1][1]
    assert "Extracted 2 file(s)" in capsys.readouterr().out

    apk_file.unlink()
    assert main([str(out_dir)]) == 0
    assert [e.name for e in list_apk(apk_file)] == ["tex0.dds", "tex1.dds"]
    assert "Packed 2 file(s)" in capsys.readouterr().out


def test_output_option(apk_file, tmp_path):
    dest = tmp_path / "elsewhere"
    assert main([str(apk_file), "-o", str(dest)]) == 0
    assert (dest / "FileList.txt").is_file()
    assert main([str(dest), "-o", str(tmp_path / "again.apk")]) == 0
    assert len(list_apk(tmp_path / "again.apk")) == 2


def test_list(apk_file, capsys):
    assert main([str(apk_file), "--list"]) == 0
    out = capsys.readouterr().out
    assert "2 entries" in out
    assert "tex0.dds" in out and "tex1.dds" in out
    assert not apk_file.with_suffix("").exists()


def test_missing_path(tmp_path, capsys):
    assert main([str(tmp_path / "nothing.apk")]) == 1
    assert "Not a file or folder" in capsys.readouterr().err


def test_format_error_reported(tmp_path, capsys):
    bad = tmp_path / "bad.apk"
    bad.write_bytes(make_apk([("a.dds", b"a")])[:0x30])
    assert main([str(bad)]) == 1
    assert capsys.readouterr().err.startswith("Error:")


def test_config_file_used(tmp_path, apk_file):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"manifest_name": "order.txt"}))
    assert main([str(apk_file), "-c", str(cfg)]) == 0
    out_dir = tmp_path / "textures"
    assert (out_dir / "order.txt").is_file()
    assert not (out_dir / "FileList.txt").exists()
    apk_file.unlink()
    assert main([str(out_dir), "-c", str(cfg)]) == 0
    assert len(list_apk(apk_file)) == 2


def test_bad_manifest_encoding_reported(tmp_path, capsys):
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.dds").write_bytes(b"a")
    (src / "FileList.txt").write_bytes(b"a.dds\n\xff\xfe\n")
    assert main([str(src)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error:")
    assert "FileList.txt" in err
    assert not (tmp_path / "src.apk").exists()
