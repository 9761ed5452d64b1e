import os

from apkpack.reader import ApkReader, extract_apk, list_apk
from apkpack.writer import pack_apk
from conftest import make_apk


def test_unpack_then_repack_preserves_order_and_payloads(tmp_path):
    files = [
        ("tex0.dds", b"DDS " + os.urandom(500)),
        ("z_last_alphabetically.dds", b"DDS " + b"\x10" * 4096),
        ("a_first_alphabetically.dds", b""),
        ("tex1.dds", b"DDS " + bytes(range(256)) * 17),
    ]
    original = tmp_path / "pack.apk"
    original.write_bytes(make_apk(files))

    extract_apk(original)
    rebuilt = tmp_path / "rebuilt.apk"
    pack_apk(tmp_path / "pack", rebuilt)

    assert [e.name for e in list_apk(rebuilt)] == [e.name for e in list_apk(original)]
    a, b = ApkReader(original), ApkReader(rebuilt)
    for i, (_, data) in enumerate(files):
        assert a.read_file(i) == b.read_file(i) == data


def test_two_entry_scenario(tmp_path):
    original = tmp_path / "scene.apk"
    original.write_bytes(make_apk([("tex0.dds", b"first"), ("tex1.dds", b"second")]))
    assert original.read_bytes()[8:12] == b"\x02\x00\x00\x00"

    extract_apk(original)
    out_dir = tmp_path / "scene"
    assert sorted(p.name for p in out_dir.iterdir()) == ["FileList.txt", "tex0.dds", "tex1.dds"]
    assert (out_dir / "FileList.txt").read_text().splitlines() == ["tex0.dds", "tex1.dds"]

    os.remove(original)
    pack_apk(out_dir)
    assert [e.name for e in list_apk(original)] == ["tex0.dds", "tex1.dds"]


def test_empty_roundtrip(tmp_path):
    original = tmp_path / "none.apk"
    original.write_bytes(make_apk([]))
    extract_apk(original)
    original.unlink()
    assert pack_apk(tmp_path / "none") == 0
    assert list_apk(original) == []
    assert len(original.read_bytes()) == 0x10
