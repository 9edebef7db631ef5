"""Tests for dupe.config — configuration loading, merging, and interactive creation."""

from __future__ import annotations

import argparse
import logging

from dupe.config import CONFIG_FILENAME, create_config_interactive, load_config, merge_config_into_args


class TestLoadConfig:
    """Test loading config.toml."""

    def test_returns_empty_dict_when_no_file(self, tmp_path):
        assert load_config(tmp_path) == {}

    def test_loads_valid_toml(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("workers = 4\nclear_screen = false\n")
        cfg = load_config(tmp_path)
        assert cfg["workers"] == 4
        assert cfg["clear_screen"] is False

    def test_all_supported_keys(self, tmp_path):
        toml = "\n".join([
            "clear_screen = false",
            "progress = false",
            "workers = 2",
            'exclude = ["*.tmp", "*.bak"]',
            'exclude_dir = [".git"]',
        ])
        (tmp_path / CONFIG_FILENAME).write_text(toml)
        cfg = load_config(tmp_path)
        assert len(cfg) == 5
        assert cfg["exclude"] == ["*.tmp", "*.bak"]

    def test_returns_empty_dict_on_parse_error(self, tmp_path, caplog):
        (tmp_path / CONFIG_FILENAME).write_text("this is not valid toml [[[")
        with caplog.at_level(logging.WARNING, logger="dupe"):
            assert load_config(tmp_path) == {}
        assert "Ignoring unreadable config" in caplog.text

    def test_uses_default_config_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        config_dir = tmp_path / "dupe"
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / CONFIG_FILENAME).write_text("progress = false\n")
        assert load_config()["progress"] is False


class TestMergeConfigIntoArgs:
    """Test merging config into argparse Namespace."""

    def _make_args(self, **kwargs):
        defaults = dict(
            clear_screen=None, progress=None, workers=None,
            exclude=None, exclude_dir=None,
        )
        defaults.update(kwargs)
        return argparse.Namespace(**defaults)

    def test_defaults_when_neither_cli_nor_config(self):
        args = self._make_args()
        merge_config_into_args(args, {})
        assert args.clear_screen is True
        assert args.progress is True
        assert args.workers == 1
        assert args.exclude == []
        assert args.exclude_dir == []

    def test_boolean_from_config(self):
        args = self._make_args()
        merge_config_into_args(args, {"clear_screen": False})
        assert args.clear_screen is False

    def test_cli_boolean_overrides_config(self):
        args = self._make_args(progress=False)
        merge_config_into_args(args, {"progress": True})
        assert args.progress is False

    def test_workers_from_config(self):
        args = self._make_args()
        merge_config_into_args(args, {"workers": 8})
        assert args.workers == 8

    def test_cli_workers_override_config(self):
        args = self._make_args(workers=2)
        merge_config_into_args(args, {"workers": 8})
        assert args.workers == 2

    def test_invalid_workers_in_config_uses_default(self, caplog):
        for bad in (0, -3, "four", True):
            args = self._make_args()
            with caplog.at_level(logging.WARNING, logger="dupe"):
                merge_config_into_args(args, {"workers": bad})
            assert args.workers == 1
        assert "Invalid 'workers'" in caplog.text

    def test_exclude_lists_merged(self):
        args = self._make_args(exclude=["*.tmp"])
        merge_config_into_args(args, {"exclude": ["*.bak", "*.tmp"]})
        assert args.exclude == ["*.tmp", "*.bak"]

    def test_exclude_empty_cli_uses_config(self):
        args = self._make_args()
        merge_config_into_args(args, {"exclude_dir": [".git", "node_modules"]})
        assert args.exclude_dir == [".git", "node_modules"]

    def test_string_exclude_is_one_pattern(self):
        args = self._make_args()
        merge_config_into_args(args, {"exclude": "*.tmp", "exclude_dir": ".git"})
        assert args.exclude == ["*.tmp"]
        assert args.exclude_dir == [".git"]

    def test_string_exclude_merged_with_cli(self):
        args = self._make_args(exclude=["*.bak"])
        merge_config_into_args(args, {"exclude": "*.tmp"})
        assert args.exclude == ["*.bak", "*.tmp"]

    def test_invalid_exclude_in_config_ignored(self, caplog):
        for bad in (3, ["*.tmp", 4], {"glob": "*.tmp"}):
            args = self._make_args()
            with caplog.at_level(logging.WARNING, logger="dupe"):
                merge_config_into_args(args, {"exclude": bad})
            assert args.exclude == []
        assert "Invalid 'exclude'" in caplog.text


class TestCreateConfigInteractive:
    """Test interactive config creation."""

    def test_creates_config_file(self, tmp_path):
        inputs = iter([""] * 10)
        path = create_config_interactive(
            config_dir=tmp_path, input_fn=lambda _: next(inputs), print_fn=lambda *a: None,
        )
        assert path == tmp_path / CONFIG_FILENAME
        assert path.exists()

    def test_defaults_not_written(self, tmp_path):
        inputs = iter([""] * 10)
        create_config_interactive(
            config_dir=tmp_path, input_fn=lambda _: next(inputs), print_fn=lambda *a: None,
        )
        assert load_config(tmp_path) == {}

    def test_custom_values_written(self, tmp_path):
        responses = {
            "clear": "false",
            "progress": "no",
            "workers": "4",
            "file patterns": "*.tmp, *.bak",
            "directory patterns": ".git",
        }

        def fake_input(prompt):
            for key, val in responses.items():
                if key in prompt.lower():
                    return val
            return ""

        create_config_interactive(
            config_dir=tmp_path, input_fn=fake_input, print_fn=lambda *a: None,
        )
        cfg = load_config(tmp_path)
        assert cfg["clear_screen"] is False
        assert cfg["progress"] is False
        assert cfg["workers"] == 4
        assert cfg["exclude"] == ["*.tmp", "*.bak"]
        assert cfg["exclude_dir"] == [".git"]

    def test_invalid_workers_falls_back_to_default(self, tmp_path):
        def fake_input(prompt):
            return "zero" if "workers" in prompt.lower() else ""

        create_config_interactive(
            config_dir=tmp_path, input_fn=fake_input, print_fn=lambda *a: None,
        )
        assert "workers" not in load_config(tmp_path)

    def test_existing_config_loaded_as_defaults(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('workers = 3\nexclude = ["*.iso"]\n')
        prompts_seen = []

        def fake_input(prompt):
            prompts_seen.append(prompt)
            return ""

        create_config_interactive(
            config_dir=tmp_path, input_fn=fake_input, print_fn=lambda *a: None,
        )
        assert any("[3]" in p for p in prompts_seen)
        assert any("[*.iso]" in p for p in prompts_seen)
        cfg = load_config(tmp_path)
        assert cfg["workers"] == 3
        assert cfg["exclude"] == ["*.iso"]

    def test_reports_saved_path(self, tmp_path):
        printed = []
        inputs = iter([""] * 10)
        create_config_interactive(
            config_dir=tmp_path, input_fn=lambda _: next(inputs), print_fn=printed.append,
        )
        assert printed == [f"Configuration saved to {tmp_path / CONFIG_FILENAME}"]

    def test_existing_string_exclude_shown_as_pattern(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('exclude = "*.tmp"\n')
        prompts_seen = []

        def fake_input(prompt):
            prompts_seen.append(prompt)
            return ""

        create_config_interactive(
            config_dir=tmp_path, input_fn=fake_input, print_fn=lambda *a: None,
        )
        assert any("[*.tmp]" in p for p in prompts_seen)
        assert load_config(tmp_path)["exclude"] == ["*.tmp"]
