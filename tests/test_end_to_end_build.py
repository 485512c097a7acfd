import hashlib
import shutil

from decalpak.api import BuildOptions, build_entry
from decalpak.packing.identifier import IDENTIFIER_FIELD
from decalpak.packing.patch_table import PatchTable

from image_helper import write_noise_image


def _read_field(data, templates, result, field):
    table = PatchTable.from_schema(templates.fields)
    out = []
    for entry in table.entries_for(field):
        start, end = entry.absolute(result.segments)
        out.append(data[start:end])
    return out


def test_build_identifier_7(tmp_path, templates, source_1024):
    out = tmp_path / "run1" / "decal.pak"
    result = build_entry(
        BuildOptions(input_image=source_1024, output_path=out, identifier="7")
    )
    data = out.read_bytes()
    assert result.bytes_written == len(data) == templates.total_length()
    assert len(data) == 1399237
    assert result.identifier == 7
    assert result.warnings == []
    assert _read_field(data, templates, result, IDENTIFIER_FIELD) == [b"007"] * 5

    idx = result.segments["index"].offset
    assert data[idx + 314 : idx + 334] == hashlib.sha1(data[idx : idx + 289]).digest()
    assert data[146:162] == hashlib.md5(b"decal").digest()


def test_two_runs_byte_identical(tmp_path, source_1024):
    outs = []
    for run in ("a", "b"):
        out = tmp_path / run / "decal.pak"
        build_entry(
            BuildOptions(input_image=source_1024, output_path=out, identifier=7)
        )
        outs.append(out.read_bytes())
    assert outs[0] == outs[1]


def test_parallel_jobs_same_bytes(tmp_path, source_1024):
    seq = tmp_path / "seq" / "decal.pak"
    par = tmp_path / "par" / "decal.pak"
    build_entry(BuildOptions(input_image=source_1024, output_path=seq))
    build_entry(BuildOptions(input_image=source_1024, output_path=par, jobs=4))
    assert seq.read_bytes() == par.read_bytes()


def test_default_output_name_and_identifier(tmp_path, templates, source_1024):
    src = tmp_path / "my_decal.png"
    shutil.copyfile(source_1024, src)
    result = build_entry(BuildOptions(input_image=src))
    assert result.output_file.name == "DXM-WindowsNoEditor_Decal_my_decal_P.pak"
    data = result.output_file.read_bytes()
    assert _read_field(data, templates, result, IDENTIFIER_FIELD) == [b"013"] * 5
    assert data[146:162] == hashlib.md5(
        b"DXM-WindowsNoEditor_Decal_my_decal_P"
    ).digest()


def test_off_size_source_warns(tmp_path):
    src = write_noise_image(tmp_path / "small.png", 64)
    result = build_entry(
        BuildOptions(input_image=src, output_path=tmp_path / "small.pak", verify=True)
    )
    assert len(result.warnings) == 1
    assert "64x64" in result.warnings[0]
    assert result.bytes_written == 1399237
