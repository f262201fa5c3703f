import json

import pytest

from snapshare.config_loader import (
    default_target,
    export_target,
    import_target,
    load_targets,
    save_targets,
)
from snapshare.exceptions import ConfigLoadError
from snapshare.runtime.target_registry import TargetRegistry
from snapshare.schemas import HeaderConfig, UploadTarget


def _target(name, url="https://h.example/upload", **kwargs):
    return UploadTarget(name=name, request_url=url, **kwargs)


def test_missing_file_loads_empty(tmp_path):
    assert load_targets(tmp_path / "absent.json") == []


def test_save_writes_camel_case_and_round_trips(tmp_path):
    path = tmp_path / "snapshare.config.json"
    target = _target("Mine", headers=[HeaderConfig(key="Authorization", value="t0k")], is_default=True)

    save_targets(path, [target])

    raw = json.loads(path.read_text())
    assert raw[0]["requestURL"] == "https://h.example/upload"
    assert raw[0]["fileFormName"] == "file"
    assert raw[0]["isDefault"] is True
    assert raw[0]["headers"][0]["key"] == "Authorization"
    assert load_targets(path) == [target]


def test_yaml_targets_accepted(tmp_path):
    path = tmp_path / "targets.yaml"
    path.write_text(
        "- name: Yaml Host\n"
        "  requestURL: https://yaml.example/upload\n"
        "  fileFormName: upload\n"
        "  headers:\n"
        "    - key: X-Token\n"
        "      value: abc\n"
    )

    targets = load_targets(path)

    assert targets[0].name == "Yaml Host"
    assert targets[0].file_form_name == "upload"
    assert targets[0].headers_dict == {"X-Token": "abc"}
    assert targets[0].id


def test_unparseable_file_raises(tmp_path):
    path = tmp_path / "snapshare.config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigLoadError) as exc_info:
        load_targets(path)
    assert "snapshare.config.json" in str(exc_info.value)


def test_root_must_be_list(tmp_path):
    path = tmp_path / "snapshare.config.json"
    path.write_text(json.dumps({"name": "x"}))
    with pytest.raises(ConfigLoadError, match="list of targets"):
        load_targets(path)


def test_bad_entry_reports_index(tmp_path):
    path = tmp_path / "snapshare.config.json"
    path.write_text(json.dumps([{"name": "ok"}, "oops"]))
    with pytest.raises(ConfigLoadError, match="index 1"):
        load_targets(path)


def test_export_and_import_single_target(tmp_path):
    target = _target("Shared")
    path = tmp_path / "shared.json"
    export_target(target, path)
    assert import_target(path) == target

    with pytest.raises(ConfigLoadError, match="File not found"):
        import_target(tmp_path / "nope.json")


def test_default_target_shape():
    target = default_target()
    assert target.name == "Zipline Default"
    assert target.is_default
    assert target.headers_dict["Authorization"] == "YOUR_AUTH_TOKEN"


class TestTargetRegistry:
    def test_creates_and_persists_default(self, tmp_path):
        path = tmp_path / "cfg" / "snapshare.config.json"
        registry = TargetRegistry(path)

        assert registry.current().name == "Zipline Default"
        assert path.exists()
        assert load_targets(path)[0].id == registry.current().id

    def test_selects_default_flagged_target(self, tmp_path):
        path = tmp_path / "snapshare.config.json"
        save_targets(path, [_target("A"), _target("B", is_default=True)])
        assert TargetRegistry(path).current().name == "B"

    def test_falls_back_to_first_target(self, tmp_path):
        path = tmp_path / "snapshare.config.json"
        save_targets(path, [_target("A"), _target("B")])
        assert TargetRegistry(path).current().name == "A"

    def test_add_default_clears_other_defaults(self, tmp_path):
        registry = TargetRegistry(tmp_path / "snapshare.config.json")
        added = registry.add(_target("New", is_default=True))

        defaults = [t for t in registry.targets if t.is_default]
        assert defaults == [added]
        assert registry.current() is added
        persisted = load_targets(registry.config_path)
        assert [t.name for t in persisted if t.is_default] == ["New"]

    def test_update_and_delete(self, tmp_path):
        registry = TargetRegistry(tmp_path / "snapshare.config.json")
        original = registry.current()
        renamed = original.model_copy(update={"name": "Renamed"})

        assert registry.update(renamed)
        assert registry.current().name == "Renamed"
        assert not registry.update(_target("Unknown"))

        other = registry.add(_target("Other"))
        assert registry.delete(original.id)
        assert registry.current() is other
        assert not registry.delete(original.id)
        assert [t.name for t in load_targets(registry.config_path)] == ["Other"]

    def test_select(self, tmp_path):
        registry = TargetRegistry(tmp_path / "snapshare.config.json")
        other = registry.add(_target("Other"))
        assert registry.select(other.id) is other
        assert registry.current() is other
        with pytest.raises(KeyError):
            registry.select("missing")

    def test_import_assigns_fresh_id(self, tmp_path):
        registry = TargetRegistry(tmp_path / "snapshare.config.json")
        source = registry.current()
        export_path = tmp_path / "exported.json"

        registry.export_target(source.id, export_path)
        imported = registry.import_target(export_path)

        assert imported.id != source.id
        assert imported.name == source.name
        assert len(registry.targets) == 2
        with pytest.raises(KeyError):
            registry.export_target("missing", export_path)
