"""
Tests for the settings dock widgets.

Tests cover:
- Picking the same preset twice in a row
- Typed urls are normalized before they reach the live config
"""
import pytest

pytest.importorskip("pytestqt")
pytest.importorskip("PyQt6.QtWebEngineWidgets")

from main import ConfigPanel, SourceEditor  # noqa: E402
from wall_config import Config, Preset, Source  # noqa: E402

PRESETS = [
    Preset("Lobby", "https://youtu.be/abc"),
    Preset("Dock", "https://example.com/dock"),
]


class TestSourceEditor:
    """Preset picker on one source row."""

    def test_picker_returns_to_placeholder(self, qtbot):
        editor = SourceEditor(0, "Cam", "", 1.0, PRESETS)
        qtbot.addWidget(editor)

        editor.preset_combo.setCurrentIndex(2)

        assert editor.preset_combo.currentIndex() == 0

    def test_same_preset_can_be_picked_again(self, qtbot):
        editor = SourceEditor(3, "Cam", "", 1.0, PRESETS)
        qtbot.addWidget(editor)
        picks = []
        editor.presetChosen.connect(lambda index, preset: picks.append((index, preset)))

        editor.preset_combo.setCurrentIndex(1)
        editor.url_input.setText("https://example.com/edited")
        editor.preset_combo.setCurrentIndex(1)

        assert picks == [(3, 0), (3, 0)]

    def test_picker_disabled_without_presets(self, qtbot):
        editor = SourceEditor(0, "Cam", "", 1.0, [])
        qtbot.addWidget(editor)
        assert not editor.preset_combo.isEnabled()


class TestConfigPanel:
    """Copying unsaved panel values into the working config."""

    def test_sync_normalizes_typed_urls(self, qtbot):
        config = Config(sources=[Source(name="a", url="", weight=1.0), Source(name="b", url="", weight=2.0)])
        panel = ConfigPanel()
        qtbot.addWidget(panel)
        panel.populate(config)

        panel.editors[0].url_input.setText("https://www.youtube.com/watch?v=live1")
        panel.editors[1].url_input.setText("https://cdn.example.com/cam.m3u8")
        panel.sync_into(config)

        assert config.sources[0].url == "https://www.youtube.com/embed/live1?autoplay=1&mute=1"
        assert config.sources[1].url == "player.html?src=https%3A%2F%2Fcdn.example.com%2Fcam.m3u8"
        assert config.sources[1].weight == 2.0

    def test_count_matches_sources(self, qtbot):
        config = Config(sources=[Source(name=str(i)) for i in range(4)], grid_columns=2)
        panel = ConfigPanel()
        qtbot.addWidget(panel)
        panel.populate(config)

        assert panel.count_combo.currentText() == "4"
        assert panel.columns_combo.currentText() == "2"
        assert len(panel.editors) == 4
