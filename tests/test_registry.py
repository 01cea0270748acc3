import json

from hub import registry


def _make_app(root, name, meta=None, raw=None):
    d = root / name
    d.mkdir()
    if raw is not None:
        (d / "meta.json").write_text(raw, encoding="utf-8")
    elif meta is not None:
        (d / "meta.json").write_text(json.dumps(meta), encoding="utf-8")
    return d


def test_sorted_by_date_descending(tmp_path):
    _make_app(tmp_path, "2024-01-01-foo", {"name": "Foo"})
    _make_app(tmp_path, "2024-02-01-bar", {"name": "Bar"})
    apps = registry.scan_apps(tmp_path)
    assert [a.name for a in apps] == ["Bar", "Foo"]


def test_defaults_filled_from_folder_name(tmp_path):
    _make_app(tmp_path, "2026-02-09-moodflow", {})
    (app,) = registry.scan_apps(tmp_path)
    assert app.id == "2026-02-09-moodflow"
    assert app.name == "2026-02-09-moodflow"
    assert app.date == "2026-02-09"
    assert app.trend == "Unknown trend"
    assert app.description == "No description"
    assert app.path == "/apps/2026-02-09-moodflow"
    assert app.stars == 0
    assert app.techStack == []


def test_metadata_overrides_defaults(tmp_path):
    meta = {
        "name": "MoodFlow",
        "date": "2026-02-10",
        "trend": "AI journaling",
        "description": "Track moods",
        "stars": 4,
        "techStack": ["HTML", "CSS"],
    }
    _make_app(tmp_path, "2026-02-09-moodflow", meta)
    (app,) = registry.scan_apps(tmp_path)
    assert app.name == "MoodFlow"
    assert app.date == "2026-02-10"
    assert app.trend == "AI journaling"
    assert app.stars == 4
    assert app.techStack == ["HTML", "CSS"]


def test_empty_values_fall_back_to_defaults(tmp_path):
    _make_app(tmp_path, "2026-02-01-x", {"name": "", "description": None})
    (app,) = registry.scan_apps(tmp_path)
    assert app.name == "2026-02-01-x"
    assert app.description == "No description"


def test_folders_without_valid_meta_are_skipped(tmp_path):
    _make_app(tmp_path, "2026-02-01-good", {"name": "Good"})
    _make_app(tmp_path, "2026-02-02-nometa")
    _make_app(tmp_path, "2026-02-03-badjson", raw="{not json")
    _make_app(tmp_path, "2026-02-04-array", raw="[1, 2]")
    apps = registry.scan_apps(tmp_path)
    assert [a.id for a in apps] == ["2026-02-01-good"]


def test_each_folder_listed_once(tmp_path):
    for i in range(1, 6):
        _make_app(tmp_path, f"2026-02-0{i}-app", {"name": f"App {i}"})
    ids = [a.id for a in registry.scan_apps(tmp_path)]
    assert len(ids) == len(set(ids)) == 5


def test_hidden_entries_and_files_ignored(tmp_path):
    _make_app(tmp_path, ".git", {"name": "Hidden"})
    (tmp_path / "README.md").write_text("hi", encoding="utf-8")
    _make_app(tmp_path, "2026-02-01-shown", {"name": "Shown"})
    assert [a.name for a in registry.scan_apps(tmp_path)] == ["Shown"]


def test_missing_root_gives_empty_catalog(tmp_path):
    assert registry.scan_apps(tmp_path / "nope") == []


def test_date_ties_keep_scan_order(tmp_path):
    _make_app(tmp_path, "a-app", {"date": "2026-01-01"})
    _make_app(tmp_path, "b-app", {"date": "2026-01-01"})
    _make_app(tmp_path, "c-app", {"date": "2026-03-01"})
    assert [a.id for a in registry.scan_apps(tmp_path)] == ["c-app", "a-app", "b-app"]


def test_string_ordering_is_not_calendar_aware(tmp_path):
    # "9" > "1" as strings, so a short year sorts ahead of a later ISO date
    _make_app(tmp_path, "old", {"date": "99-01-01"})
    _make_app(tmp_path, "new", {"date": "2026-01-01"})
    assert [a.id for a in registry.scan_apps(tmp_path)] == ["old", "new"]


def test_scan_report_lists_skipped_folders(tmp_path):
    _make_app(tmp_path, "2026-02-01-good", {"name": "Good"})
    _make_app(tmp_path, "2026-02-02-nometa")
    _make_app(tmp_path, "2026-02-03-badjson", raw="{")
    report = registry.scan_report(tmp_path)
    assert [a.id for a in report.apps] == ["2026-02-01-good"]
    skipped = {s.id: s.reason for s in report.skipped}
    assert set(skipped) == {"2026-02-02-nometa", "2026-02-03-badjson"}
    assert "meta.json" in skipped["2026-02-02-nometa"]


def test_default_root_comes_from_module_setting(tmp_path, monkeypatch):
    _make_app(tmp_path, "2026-02-01-x", {"name": "X"})
    monkeypatch.setattr(registry, "APPS_DIR", tmp_path)
    assert [a.name for a in registry.scan_apps()] == ["X"]


def test_mistyped_fields_keep_the_app_listed(tmp_path):
    _make_app(tmp_path, "2026-02-01-num", {"name": 2048})
    _make_app(tmp_path, "2026-02-02-vibe", {"name": "Vibe", "techStack": "React"})
    _make_app(tmp_path, "2026-02-03-stars", {"name": "Stars", "stars": "five"})
    _make_app(tmp_path, "2026-02-04-nested", {"name": {"nested": True}, "techStack": ["JS", 3, {"x": 1}]})
    apps = {a.id: a for a in registry.scan_apps(tmp_path)}
    assert set(apps) == {"2026-02-01-num", "2026-02-02-vibe", "2026-02-03-stars", "2026-02-04-nested"}
    assert apps["2026-02-01-num"].name == "2048"
    assert apps["2026-02-02-vibe"].techStack == []
    assert apps["2026-02-03-stars"].stars == 0
    assert apps["2026-02-04-nested"].name == "2026-02-04-nested"
    assert apps["2026-02-04-nested"].techStack == ["JS", "3"]


def test_non_finite_stars_fall_back_to_zero(tmp_path):
    _make_app(tmp_path, "2026-02-01-nan", raw='{"name": "NaN app", "stars": NaN}')
    (app,) = registry.scan_apps(tmp_path)
    assert app.stars == 0
