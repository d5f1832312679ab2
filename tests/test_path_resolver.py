"""Tests for placeholder expansion and globbing."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from savevault.core.path_resolver import (
    SKIP,
    glob_any,
    os_directory_placeholders,
    parse_paths,
    proton_placeholders,
)
from savevault.core.strict_path import StrictPath
from savevault.models.locations import RootsConfig
from savevault.models.platform import Os, Store

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX path syntax")


@pytest.fixture
def manifest_dir(tmp: Path) -> StrictPath:
    return StrictPath.from_path(tmp)


@pytest.fixture
def root(tmp: Path) -> RootsConfig:
    return RootsConfig(StrictPath.from_path(tmp / "root"))


@pytest.fixture
def steam_root(tmp: Path) -> RootsConfig:
    return RootsConfig(StrictPath.from_path(tmp / "steam"), Store.STEAM)


def _rendered(paths: set[StrictPath]) -> set[str]:
    return {p.render() for p in paths}


class TestParsePaths:
    def test_root_and_game(self, root: RootsConfig, manifest_dir: StrictPath, tmp: Path) -> None:
        paths = parse_paths("<root>/<game>/save.dat", root, ["G"], None, manifest_dir, Os.LINUX)
        assert _rendered(paths) == {f"{tmp}/root/G/save.dat"}

    def test_base_for_other_store(self, root: RootsConfig, manifest_dir: StrictPath, tmp: Path) -> None:
        paths = parse_paths("<base>/save.dat", root, ["G"], None, manifest_dir, Os.LINUX)
        assert _rendered(paths) == {f"{tmp}/root/G/save.dat"}

    def test_base_for_steam(self, steam_root: RootsConfig, manifest_dir: StrictPath, tmp: Path) -> None:
        paths = parse_paths("<base>/save.dat", steam_root, ["G"], None, manifest_dir, Os.MAC)
        assert _rendered(paths) == {f"{tmp}/steam/steamapps/common/G/save.dat"}

    def test_store_user_id(
        self, root: RootsConfig, steam_root: RootsConfig, manifest_dir: StrictPath
    ) -> None:
        other = parse_paths("<root>/<storeUserId>", root, ["G"], None, manifest_dir, Os.LINUX)
        steam = parse_paths("<root>/<storeUserId>", steam_root, ["G"], None, manifest_dir, Os.MAC)
        assert next(iter(other)).raw.endswith("/*")
        assert next(iter(steam)).raw.endswith("/[0-9]*")

    def test_one_candidate_per_install_dir(
        self, root: RootsConfig, manifest_dir: StrictPath, tmp: Path
    ) -> None:
        paths = parse_paths("<base>/save.dat", root, ["A", "B"], None, manifest_dir, Os.LINUX)
        assert _rendered(paths) == {f"{tmp}/root/A/save.dat", f"{tmp}/root/B/save.dat"}

    def test_relative_template_uses_manifest_dir(
        self, root: RootsConfig, manifest_dir: StrictPath, tmp: Path
    ) -> None:
        paths = parse_paths("saves/<game>.dat", root, ["G"], None, manifest_dir, Os.LINUX)
        assert _rendered(paths) == {f"{tmp}/saves/G.dat"}

    def test_home(
        self, root: RootsConfig, manifest_dir: StrictPath, tmp: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp / "home"))
        paths = parse_paths("<home>/.game/save.dat", root, ["G"], None, manifest_dir, Os.LINUX)
        assert _rendered(paths) == {f"{tmp}/home/.game/save.dat"}

    def test_windows_placeholder_skipped_on_linux(
        self, root: RootsConfig, manifest_dir: StrictPath
    ) -> None:
        paths = parse_paths("<winAppData>/Studio/save.dat", root, ["G"], None, manifest_dir, Os.LINUX)
        assert paths
        assert all(SKIP in p.raw for p in paths)

    def test_proton_variants(self, steam_root: RootsConfig, manifest_dir: StrictPath, tmp: Path) -> None:
        paths = parse_paths("<winAppData>/Studio/save.dat", steam_root, ["G"], 123, manifest_dir, Os.LINUX)
        user = f"{tmp}/steam/steamapps/compatdata/123/pfx/drive_c/users/steamuser"
        assert len(paths) == 3
        assert f"{user}/AppData/Roaming/Studio/save.dat" in _rendered(paths)
        assert f"{user}/Application Data/Studio/save.dat" in _rendered(paths)

    def test_proton_variants_collapse_without_windows_folders(
        self, steam_root: RootsConfig, manifest_dir: StrictPath, tmp: Path
    ) -> None:
        paths = parse_paths("<home>/save.dat", steam_root, ["G"], 123, manifest_dir, Os.LINUX)
        assert f"{tmp}/steam/steamapps/compatdata/123/pfx/drive_c/users/steamuser/save.dat" in _rendered(paths)
        assert len(paths) == 2

    def test_no_proton_variant_off_linux(self, steam_root: RootsConfig, manifest_dir: StrictPath) -> None:
        paths = parse_paths("<winAppData>/save.dat", steam_root, ["G"], 123, manifest_dir, Os.MAC)
        assert len(paths) == 1

    def test_no_proton_variant_without_steam_id(self, steam_root: RootsConfig, manifest_dir: StrictPath) -> None:
        paths = parse_paths("<winAppData>/save.dat", steam_root, ["G"], None, manifest_dir, Os.LINUX)
        assert len(paths) == 1


class TestPlaceholders:
    def test_registry_always_skipped(self) -> None:
        for target_os in Os:
            values = os_directory_placeholders(target_os)
            assert values["<regHkcu>"] == SKIP
            assert values["<regHklm>"] == SKIP

    def test_xdg_skipped_on_windows(self) -> None:
        assert os_directory_placeholders(Os.WINDOWS)["<xdgData>"] == SKIP

    def test_xdg_data_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", "/xdg/data")
        assert os_directory_placeholders(Os.LINUX)["<xdgData>"] == "/xdg/data"

    def test_xdg_config_default(self, monkeypatch: pytest.MonkeyPatch, tmp: Path) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp))
        assert os_directory_placeholders(Os.LINUX)["<xdgConfig>"] == f"{tmp}/.config"

    def test_mac_uses_application_support(self) -> None:
        assert os_directory_placeholders(Os.MAC)["<xdgConfig>"].endswith("Library/Application Support")

    def test_proton_documents(self) -> None:
        values = proton_placeholders("/pfx/drive_c", Os.LINUX)
        assert values["<winDocuments>"] == "/pfx/drive_c/users/steamuser/Documents"
        assert values["<winDir>"] == "/pfx/drive_c/windows"

    def test_proton_legacy_folders(self) -> None:
        values = proton_placeholders("/pfx/drive_c", Os.LINUX, legacy=True)
        assert values["<winDocuments>"] == "/pfx/drive_c/users/steamuser/My Documents"
        assert values["<winLocalAppData>"] == "/pfx/drive_c/users/steamuser/Application Data"
        assert values["<winDir>"] == "/pfx/drive_c/windows"


@pytest.fixture
def saves(tmp: Path) -> Path:
    folder = tmp / "a"
    (folder / "sub").mkdir(parents=True)
    for name in ("One.sav", "two.sav", ".hidden.sav", "notes.txt", "sub/three.sav"):
        (folder / name).write_text("x")
    return folder


class TestGlob:
    def test_star_stays_in_segment(self, saves: Path) -> None:
        matches = glob_any(StrictPath(f"{saves}/*.sav"))
        assert matches == sorted([f"{saves}/.hidden.sav", f"{saves}/One.sav", f"{saves}/two.sav"])

    def test_wildcard_directory(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/*/three.sav")) == [f"{saves}/sub/three.sav"]

    def test_question_mark(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/tw?.sav")) == [f"{saves}/two.sav"]

    def test_case_sensitive_on_linux(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/one.SAV", target_os=Os.LINUX)) == []

    def test_case_insensitive_on_mac(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/one.SAV", target_os=Os.MAC)) == [f"{saves}/One.sav"]

    def test_literal_directory(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/sub/")) == [f"{saves}/sub"]

    def test_no_match(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/missing/*.sav")) == []

    def test_unbalanced_bracket(self, saves: Path) -> None:
        assert glob_any(StrictPath(f"{saves}/[.sav")) == []


@pytest.fixture
def nested_saves(tmp: Path) -> Path:
    folder = tmp / "saves"
    (folder / "a" / "b").mkdir(parents=True)
    (folder / "top.sav").write_text("x")
    (folder / "a" / "b" / "slot.sav").write_text("x")
    (folder / "a" / "b" / "notes.txt").write_text("x")
    return folder


class TestRecursiveGlob:
    def test_matches_any_depth(self, nested_saves: Path) -> None:
        matches = glob_any(StrictPath(f"{nested_saves}/**/*.sav", target_os=Os.LINUX))
        assert matches == [f"{nested_saves}/a/b/slot.sav", f"{nested_saves}/top.sav"]

    def test_in_the_middle(self, nested_saves: Path) -> None:
        matches = glob_any(StrictPath(f"{nested_saves}/**/b", target_os=Os.LINUX))
        assert matches == [f"{nested_saves}/a/b"]

    def test_trailing_matches_directories(self, nested_saves: Path) -> None:
        matches = glob_any(StrictPath(f"{nested_saves}/**", target_os=Os.LINUX))
        assert matches == [f"{nested_saves}", f"{nested_saves}/a", f"{nested_saves}/a/b"]

    def test_repeated(self, nested_saves: Path) -> None:
        matches = glob_any(StrictPath(f"{nested_saves}/**/**/slot.sav", target_os=Os.LINUX))
        assert matches == [f"{nested_saves}/a/b/slot.sav"]

    def test_double_star_inside_segment_stays_in_segment(self, nested_saves: Path) -> None:
        assert glob_any(StrictPath(f"{nested_saves}/t**.sav", target_os=Os.LINUX)) == [f"{nested_saves}/top.sav"]
        assert glob_any(StrictPath(f"{nested_saves}/a**/slot.sav", target_os=Os.LINUX)) == []

    def test_missing_parent(self, tmp: Path) -> None:
        assert glob_any(StrictPath(f"{tmp}/missing/**/*.sav", target_os=Os.LINUX)) == []
