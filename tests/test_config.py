from print_exporter.config import LayoutChoice, UserConfig, load_config, save_config
from print_exporter.imaging.sizes import targets_for
from print_exporter.models.enums import ExportFormat, LayoutMode, Orientation


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "nope.json")
    assert cfg == UserConfig()
    assert cfg.export_formats() == [ExportFormat.PNG]


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{not json")
    assert load_config(path) == UserConfig()


def test_round_trip_with_layouts(tmp_path):
    path = tmp_path / "cfg.json"
    cfg = UserConfig(output_dir="/prints", formats=["png", "jpeg"], orientation="landscape", workers=2)
    mat = targets_for(Orientation.LANDSCAPE, ["4x5"])[0].with_layout(
        mode=LayoutMode.MAT, mat_percent=12, background="#f0e0d0"
    )
    cfg.remember_layout(mat)
    save_config(cfg, path)

    loaded = load_config(path)
    assert loaded == cfg
    assert loaded.export_formats() == [ExportFormat.PNG, ExportFormat.JPEG]
    assert loaded.orientation_enum() is Orientation.LANDSCAPE

    restored = loaded.apply_layouts(targets_for(Orientation.LANDSCAPE, ["2x3", "4x5"]))
    assert restored[0].mode is LayoutMode.CROP
    assert restored[1].mode is LayoutMode.MAT
    assert restored[1].mat_percent == 12
    assert restored[1].background == (0xF0, 0xE0, 0xD0)


def test_bad_saved_values_are_ignored():
    cfg = UserConfig(formats=["png", "tiff"], orientation="diagonal")
    cfg.layouts["4x5"] = LayoutChoice(mode="stretch")
    cfg.layouts["2x3"] = LayoutChoice(mode="mat", mat_percent=50)

    assert cfg.export_formats() == [ExportFormat.PNG]
    assert cfg.orientation_enum() is None
    targets = cfg.apply_layouts(targets_for(Orientation.PORTRAIT, ["4x5", "2x3"]))
    assert [t.mode for t in targets] == [LayoutMode.CROP, LayoutMode.CROP]
