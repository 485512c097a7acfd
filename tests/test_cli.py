import pytest

from decalpak.cli import main

from image_helper import write_noise_image


@pytest.mark.parametrize("index", ["abc", "1000", "-1", "4.5"])
def test_bad_index_exits_without_output(tmp_path, capsys, index):
    src = write_noise_image(tmp_path / "d.png", 8)
    rc = main(["-i", index, str(src), str(tmp_path / "out.pak")])
    assert rc == 1
    assert sorted(p.name for p in tmp_path.iterdir()) == ["d.png"]
    err = capsys.readouterr().err
    assert "index" in err


def test_unparseable_index_message(tmp_path, capsys):
    src = write_noise_image(tmp_path / "d.png", 8)
    assert main(["--index", "abc", str(src)]) == 1
    assert "Could not parse index 'abc'." in capsys.readouterr().err


def test_missing_input_is_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2
    assert "usage" in capsys.readouterr().err


def test_too_many_positionals(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["a.png", "b.pak", "c.pak"])
    assert exc.value.code == 2


def test_build_via_cli(tmp_path, source_1024):
    out = tmp_path / "cli.pak"
    rc = main(["-r", "silent", "-i", "5", "--verify", str(source_1024), str(out)])
    assert rc == 0
    assert out.stat().st_size == 1399237


def test_config_supplies_defaults(tmp_path, source_1024):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("identifier: 21\nreporter: silent\noutput_prefix: Pre_\n")
    src = tmp_path / "x.png"
    src.write_bytes(source_1024.read_bytes())
    assert main(["--config", str(cfg), str(src)]) == 0
    out = tmp_path / "Pre_x_P.pak"
    assert out.exists()
    idx = 473 + 53 + 1398128 + 233
    assert out.read_bytes()[idx + 74 : idx + 77] == b"021"
