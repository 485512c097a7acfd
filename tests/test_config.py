import json

import pytest

from decalpak.config import (
    ConfigDefaults,
    derive_output_path,
    load_config,
)


def test_yaml_defaults(tmp_path):
    cfg = tmp_path / "decalpak.yaml"
    cfg.write_text("identifier: 42\njobs: 3\nreporter: silent\n")
    d = load_config(cfg)
    assert d.identifier == "42"
    assert d.jobs == 3
    assert d.reporter == "silent"
    assert d.output_suffix == ConfigDefaults().output_suffix


def test_json_defaults(tmp_path):
    cfg = tmp_path / "decalpak.json"
    cfg.write_text(json.dumps({"output_prefix": "X_", "verbose": 2}))
    d = load_config(cfg)
    assert d.output_prefix == "X_"
    assert d.verbose == 2


def test_unknown_keys_rejected(tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("identifer: 3\n")
    with pytest.raises(ValueError, match="identifer"):
        load_config(cfg)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_derived_output_name(tmp_path):
    out = derive_output_path(tmp_path / "my_decal.png")
    assert out == tmp_path.resolve() / "DXM-WindowsNoEditor_Decal_my_decal_P.pak"
    custom = derive_output_path(tmp_path / "a.png", "pre_", ".bin")
    assert custom.name == "pre_a.bin"
