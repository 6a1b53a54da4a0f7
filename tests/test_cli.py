import json

import pytest

from galjed import (
    Chip,
    FuseMapError,
    UnsupportedChipVariant,
    build_config,
    get_command_arguments,
    get_jedec_filepath,
    load_fuse_map,
    main,
    parse_bits,
    select_chip,
)


def write_fuse_map(path, fusemap, comment = None):
    text = json.dumps(fusemap, indent = 4)
    if comment:
        text = f"# {comment}\n" + text
    path.write_text(text)
    return path


def zero_gal16v8_fuse_map():
    return {
        "chip": "GAL16V8",
        "fuses": "0" * 2048,
        "xor": "00000000",
        "sig": "0" * 64,
        "ac1": [0] * 8,
        "pt": "0" * 64,
        "syn": 0,
        "ac0": 0,
    }


def test_parse_bits_string_and_list():
    assert parse_bits("xor", "0110 1\n01") == [False, True, True, False, True, False, True]
    assert parse_bits("xor", [1, 0, True]) == [True, False, True]


@pytest.mark.parametrize("value", ["0120", [0, 2], 5])
def test_parse_bits_rejects_bad_values(value):
    with pytest.raises(FuseMapError):
        parse_bits("sig", value)


def test_load_fuse_map_strips_comments(tmp_path):
    path = write_fuse_map(tmp_path / "counter.fuses.json", zero_gal16v8_fuse_map(), comment = "counter for board rev b")

    fusemap = load_fuse_map(path)

    assert fusemap["chip"] == "GAL16V8"
    assert len(fusemap["fuses"]) == 2048
    assert fusemap["s1"] is None
    assert fusemap["syn"] is False


def test_load_fuse_map_rejects_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{ not json")

    with pytest.raises(FuseMapError):
        load_fuse_map(path)


def test_select_chip_prefers_devicetype():
    assert select_chip("gal22v10", {"chip": "GAL16V8"}) is Chip.GAL22V10
    assert select_chip("auto", {"chip": "gal20ra10"}) is Chip.GAL20RA10


def test_select_chip_errors():
    with pytest.raises(FuseMapError):
        select_chip("auto", {"chip": None})

    with pytest.raises(UnsupportedChipVariant):
        select_chip("auto", {"chip": "GAL26CV12"})


def test_build_config_carries_every_flag():
    config = build_config(get_command_arguments(["--secbit", "--pin", "--fusechk", "x.json"]))

    assert (config.gen_fuse, config.gen_chip, config.gen_pin, config.jedec_sec_bit, config.jedec_fuse_chk) == (0, 0, 1, 1, 1)


def test_main_writes_jed_next_to_fuse_map(tmp_path, capsys):
    path = write_fuse_map(tmp_path / "counter.fuses.json", zero_gal16v8_fuse_map())

    assert main([str(path)]) == 0

    jedec = (tmp_path / "counter.jed").read_bytes()
    assert jedec.startswith(b"\x02\n")
    assert jedec.endswith(b"*C0000\n*\n\x033db7\n")

    out = capsys.readouterr().out
    assert "Device detected: GAL16V8" in out
    assert "Writing JEDEC file:" in out


def test_main_uses_outdir_and_secbit(tmp_path):
    path = write_fuse_map(tmp_path / "counter.json", zero_gal16v8_fuse_map())
    outdir = tmp_path / "jed"
    outdir.mkdir()

    assert main(["--secbit", "--outdir", str(outdir), str(path)]) == 0

    assert b"*G1\n" in (outdir / "counter.jed").read_bytes()


def test_main_reports_failures_and_continues(tmp_path, capsys):
    good = write_fuse_map(tmp_path / "good.json", zero_gal16v8_fuse_map())

    short = zero_gal16v8_fuse_map()
    short["fuses"] = "0" * 100
    bad = write_fuse_map(tmp_path / "bad.json", short)

    assert main([str(bad), str(good), str(tmp_path / "missing.json")]) == 1

    assert (tmp_path / "good.jed").exists()
    assert not (tmp_path / "bad.jed").exists()

    out = capsys.readouterr().out
    assert "Fuse region 'fuses' has 100 bits, 2048 bits expected" in out
    assert "missing.json" in out


def test_main_reports_non_utf8_fuse_map_and_continues(tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_bytes(b'{"chip": "GAL16V8\xff"}')
    good = write_fuse_map(tmp_path / "good.json", zero_gal16v8_fuse_map())

    assert main([str(bad), str(good)]) == 1

    assert (tmp_path / "good.jed").exists()
    assert "not valid utf-8" in capsys.readouterr().out


def test_load_fuse_map_rejects_non_utf8(tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"chip": "GAL16V8", "note": "\xe9"}')

    with pytest.raises(FuseMapError):
        load_fuse_map(path)


@pytest.mark.parametrize("name, outdir, expected", [
    ("counter.fuses.json", None, "counter.jed"),
    ("counter.json", None, "counter.jed"),
    (".hidden.json", None, ".hidden.jed"),
    ("decoder.json", "jed", "jed/decoder.jed"),
])
def test_get_jedec_filepath(tmp_path, name, outdir, expected):
    outdir = str(tmp_path / outdir) if outdir else None

    assert get_jedec_filepath(tmp_path / name, outdir) == tmp_path / expected


def test_main_refuses_to_overwrite_jed_written_in_same_run(tmp_path, capsys):
    first = write_fuse_map(tmp_path / "a.json", zero_gal16v8_fuse_map())

    second = write_fuse_map(tmp_path / "a.fuses.json", zero_gal16v8_fuse_map())

    assert main([str(first), str(second)]) == 1

    assert (tmp_path / "a.jed").read_bytes().endswith(b"\x033db7\n")
    assert "already written in this run" in capsys.readouterr().out
