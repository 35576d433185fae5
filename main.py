"""
StreamWall
PyQt6 kiosk wall that tiles remote web sources in one window

Implements:
1 Row/column grid of embedded pages sized by per source weight
2 Settings dock: title, source count, columns, presets, names, urls, widths
3 Reload only when an address changes, forced reload after save
4 YouTube links embedded muted with autoplay, HLS wrapped in a local player
5 Cross platform storage via QStandardPaths, profile export and import
6 Media permission grant for embedded camera and remote viewer pages

Tested against PyQt6 6.6 plus PyQt6-WebEngine.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Tuple

from PyQt6.QtCore import (
    PYQT_VERSION_STR,
    QT_VERSION_STR,
    QCoreApplication,
    QStandardPaths,
    QSize,
    QUrl,
    Qt,
    QtMsgType,
    pyqtSignal,
    qInstallMessageHandler,
)
from PyQt6.QtGui import (
    QAction,
    QColor,
    QKeySequence,
    QPalette,
)
from PyQt6.QtWebEngineCore import QWebEnginePage, QWebEngineSettings
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDockWidget,
    QFileDialog,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSizePolicy,
    QSlider,
    QStyle,
    QTextEdit,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from stream_urls import HLS_PLAYER_PAGE, extract_iframe_src, is_relative_address
from wall_config import (
    MAX_COLUMNS,
    MAX_SOURCES,
    MAX_WEIGHT,
    MIN_WEIGHT,
    PRESETS_FILE_NAME,
    Config,
    ConfigStore,
    ConfigStoreError,
    Preset,
    apply_preset,
    clamp_weight,
    ensure_sources,
    prepare_for_save,
    remove_source,
    resource_path,
    set_columns,
    set_source_count,
    set_weight,
    update_source,
)
from wall_layout import Grid, LayoutState, reconcile, stretch_units

APP_NAME = "StreamWall"
APP_ORG = "StreamWall"
APP_DOMAIN = "streamwall.local"
APP_VERSION = "1.2.0"

ENV_CONFIG = "STREAMWALL_CONFIG"
ENV_PRESETS = "STREAMWALL_PRESETS"
ENV_DEBUG = "STREAMWALL_DEBUG"

# slider works in tenths so weights keep one decimal
WEIGHT_STEPS = 10

log = logging.getLogger("streamwall")

# ---------------- i18n helpers ----------------


def tr(ctx: str, text: str) -> str:
    return QCoreApplication.translate(ctx, text)


# ---------------- Cross platform storage ----------------


def user_app_dir() -> Path:
    loc = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    base = Path(loc) if loc else Path.home() / f".{APP_NAME.lower()}"
    base.mkdir(parents=True, exist_ok=True)
    return base


def default_files() -> Tuple[Path, Path]:
    base = user_app_dir()
    config = Path(os.getenv(ENV_CONFIG, "").strip() or base / "config.json")
    log_file = base / "streamwall.log"
    return config, log_file


def preset_locations() -> List[str]:
    locations = [
        os.getenv(ENV_PRESETS, "").strip(),
        str(user_app_dir() / PRESETS_FILE_NAME),
        str(resource_path(PRESETS_FILE_NAME)),
    ]
    return [loc for loc in locations if loc]


def debug_enabled() -> bool:
    return os.getenv(ENV_DEBUG, "").strip().lower() in ("1", "true", "yes", "on")


# ---------------- Logging ----------------


def setup_logging(log_file: Path, debug: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    fmt = logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    try:
        fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError as e:
        log.warning("File logging disabled, cannot open %s: %s", log_file, e)
        return
    fh.setFormatter(fmt)
    root.addHandler(fh)


def qt_message_handler(msg_type, msg_log_context, msg_string):
    qt_log = logging.getLogger("streamwall.qt")
    if msg_type in (QtMsgType.QtCriticalMsg, QtMsgType.QtFatalMsg):
        qt_log.error(msg_string)
    else:
        qt_log.debug(msg_string)


# ---------------- Embedded page ----------------


class WallPage(QWebEnginePage):
    """Page used by every tile: autoplay on, media capture allowed."""

    MEDIA_FEATURES = (
        QWebEnginePage.Feature.MediaAudioCapture,
        QWebEnginePage.Feature.MediaVideoCapture,
        QWebEnginePage.Feature.MediaAudioVideoCapture,
    )

    def __init__(self, parent=None):
        super().__init__(parent)
        s = self.settings()
        s.setAttribute(QWebEngineSettings.WebAttribute.PlaybackRequiresUserGesture, False)
        s.setAttribute(QWebEngineSettings.WebAttribute.FullScreenSupportEnabled, True)
        s.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessRemoteUrls, True)
        self.featurePermissionRequested.connect(self.on_feature_permission)

    def on_feature_permission(self, origin: QUrl, feature: QWebEnginePage.Feature):
        if feature in self.MEDIA_FEATURES:
            policy = QWebEnginePage.PermissionPolicy.PermissionGrantedByUser
        else:
            policy = QWebEnginePage.PermissionPolicy.PermissionDeniedByUser
        log.debug("Permission %s for %s: %s", feature, origin.toString(), policy)
        self.setFeaturePermission(origin, feature, policy)

    def javaScriptConsoleMessage(self, level, message, line, source_id):
        log.debug("js %s:%s %s", source_id, line, message)


def resolve_address(address: str) -> QUrl:
    """Bundled pages like player.html resolve against the folder holding them."""
    if is_relative_address(address):
        base = resource_path(HLS_PLAYER_PAGE).parent
        return QUrl.fromLocalFile(str(base) + "/").resolved(QUrl(address))
    return QUrl(address)


# ---------------- Tile widget ----------------


class SlotTile(QFrame):
    def __init__(self, index: int, parent=None):
        super().__init__(parent)
        self.index = index
        self.setObjectName("slot")
        self.setFrameShape(QFrame.Shape.NoFrame)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        self.label = QLabel(f"PC {index + 1}", self)
        self.label.setObjectName("slotName")
        self.label.setAccessibleName(tr("Tile", "Source name"))
        outer.addWidget(self.label, 0)

        self.view = QWebEngineView(self)
        self.view.setPage(WallPage(self.view))
        self.view.setMinimumSize(160, 90)
        self.view.setAccessibleName(tr("Tile", "Embedded source"))
        outer.addWidget(self.view, 1)

    def set_title(self, title: str):
        self.label.setText(title)

    def load(self, address: str):
        log.info("Slot %d loading %s", self.index + 1, address)
        self.view.setUrl(resolve_address(address))

    def stop(self):
        try:
            self.view.stop()
            self.view.setUrl(QUrl("about:blank"))
        except RuntimeError:
            # underlying C++ object already gone
            pass


# ---------------- Settings dock ----------------


class SourceEditor(QFrame):
    removeRequested = pyqtSignal(int)
    presetChosen = pyqtSignal(int, int)
    weightChanged = pyqtSignal(int, float)

    def __init__(self, index: int, name: str, url: str, weight: float, presets: List[Preset], parent=None):
        super().__init__(parent)
        self.index = index
        self.setObjectName("sourceEditor")
        self.setFrameShape(QFrame.Shape.StyledPanel)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(8, 6, 8, 6)
        lay.setSpacing(4)

        header = QHBoxLayout()
        badge = QLabel(f"{tr('Panel', 'Source')} #{index + 1}")
        badge.setObjectName("gridBadge")
        self.remove_button = QPushButton(self.style().standardIcon(QStyle.StandardPixmap.SP_TitleBarCloseButton), "")
        self.remove_button.setFixedSize(24, 24)
        self.remove_button.setToolTip(tr("Panel", "Remove source"))
        self.remove_button.setAccessibleName(tr("Panel", "Remove source"))
        header.addWidget(badge)
        header.addStretch()
        header.addWidget(self.remove_button)
        lay.addLayout(header)

        form = QFormLayout()
        self.preset_combo = QComboBox()
        self.preset_combo.addItem(tr("Panel", "- Select preset -"))
        for preset in presets:
            self.preset_combo.addItem(preset.label)
        self.preset_combo.setEnabled(bool(presets))

        self.name_input = QLineEdit(name)
        self.name_input.setAccessibleName(tr("Panel", "Display name"))
        self.url_input = QLineEdit(url)
        self.url_input.setPlaceholderText(tr("Panel", "Stream, dashboard or remote viewer URL"))
        self.url_input.setAccessibleName(tr("Panel", "URL"))

        weight_row = QHBoxLayout()
        self.weight_slider = QSlider(Qt.Orientation.Horizontal)
        self.weight_slider.setRange(int(MIN_WEIGHT * WEIGHT_STEPS), int(MAX_WEIGHT * WEIGHT_STEPS))
        self.weight_slider.setSingleStep(1)
        self.weight_slider.setValue(round(clamp_weight(weight) * WEIGHT_STEPS))
        self.weight_slider.setAccessibleName(tr("Panel", "Width proportion"))
        self.weight_label = QLabel(f"{clamp_weight(weight):.1f}")
        self.weight_label.setFixedWidth(32)
        weight_row.addWidget(self.weight_slider, 1)
        weight_row.addWidget(self.weight_label)

        form.addRow(tr("Panel", "Select preset"), self.preset_combo)
        form.addRow(tr("Panel", "Display name"), self.name_input)
        form.addRow(tr("Panel", "URL"), self.url_input)
        form.addRow(tr("Panel", "Width proportion (1-5)"), weight_row)
        lay.addLayout(form)

        self.remove_button.clicked.connect(lambda: self.removeRequested.emit(self.index))
        self.preset_combo.currentIndexChanged.connect(self._on_preset)
        self.weight_slider.valueChanged.connect(self._on_weight)

    def _on_preset(self, combo_index: int):
        if combo_index > 0:
            self.presetChosen.emit(self.index, combo_index - 1)
            # back to the placeholder so the same preset can be picked again
            self.preset_combo.blockSignals(True)
            self.preset_combo.setCurrentIndex(0)
            self.preset_combo.blockSignals(False)

    def _on_weight(self, value: int):
        weight = value / WEIGHT_STEPS
        self.weight_label.setText(f"{weight:.1f}")
        self.weightChanged.emit(self.index, weight)

    def set_fields(self, name: str, url: str):
        self.name_input.setText(name)
        self.url_input.setText(url)

    def values(self) -> Tuple[str, str, float]:
        url = extract_iframe_src(self.url_input.text().strip())
        return self.name_input.text(), url, self.weight_slider.value() / WEIGHT_STEPS


class ConfigPanel(QDockWidget):
    def __init__(self, parent=None):
        super().__init__(tr("Panel", "Display Settings"), parent)
        self.setAllowedAreas(Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea)
        self.setObjectName("configPanel")
        self.editors: List[SourceEditor] = []

        body = QWidget()
        lay = QVBoxLayout(body)
        lay.setContentsMargins(6, 6, 6, 6)
        lay.setSpacing(6)

        form = QFormLayout()
        self.title_input = QLineEdit()
        self.title_input.setAccessibleName(tr("Panel", "Application title"))
        self.count_combo = QComboBox()
        self.count_combo.addItems([str(i) for i in range(1, MAX_SOURCES + 1)])
        self.count_combo.setAccessibleName(tr("Panel", "Number of sources"))
        self.columns_combo = QComboBox()
        self.columns_combo.addItems([str(i) for i in range(1, MAX_COLUMNS + 1)])
        self.columns_combo.setAccessibleName(tr("Panel", "Grid columns"))
        form.addRow(tr("Panel", "Title"), self.title_input)
        form.addRow(tr("Panel", "Sources"), self.count_combo)
        form.addRow(tr("Panel", "Columns per row"), self.columns_combo)
        lay.addLayout(form)

        self.sources_box = QWidget()
        self.sources_layout = QVBoxLayout(self.sources_box)
        self.sources_layout.setContentsMargins(0, 0, 0, 0)
        self.sources_layout.setSpacing(6)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.sources_box)
        lay.addWidget(scroll, 1)

        self.save_button = QPushButton(
            self.style().standardIcon(QStyle.StandardPixmap.SP_DialogSaveButton), tr("Panel", "Save")
        )
        self.save_button.setAccessibleName(tr("Panel", "Save configuration"))
        lay.addWidget(self.save_button)

        self.setWidget(body)

    def populate(self, config: Config):
        for w in (self.title_input, self.count_combo, self.columns_combo):
            w.blockSignals(True)
        self.title_input.setText(config.app_title)
        self.count_combo.setCurrentIndex(max(len(config.sources), 1) - 1)
        self.columns_combo.setCurrentIndex(config.grid_columns - 1)
        for w in (self.title_input, self.count_combo, self.columns_combo):
            w.blockSignals(False)

        while self.sources_layout.count():
            item = self.sources_layout.takeAt(0)
            wid = item.widget()
            if wid is not None:
                wid.setParent(None)
                wid.deleteLater()
        self.editors = []
        for idx, source in enumerate(config.sources):
            weight = source.weight if source.weight is not None else MIN_WEIGHT
            ed = SourceEditor(idx, source.name, source.url, weight, config.stream_presets)
            self.sources_layout.addWidget(ed)
            self.editors.append(ed)
        self.sources_layout.addStretch()

    def sync_into(self, config: Config):
        """Copy the typed but unsaved field values into ``config``."""
        config.app_title = self.title_input.text()
        for ed in self.editors:
            name, url, weight = ed.values()
            update_source(config, ed.index, name, url, weight)


# ---------------- Diagnostics dialog ----------------


class DiagnosticsDialog(QDialog):
    def __init__(self, parent, store: ConfigStore):
        super().__init__(parent)
        self.setWindowTitle(tr("Diag", "Diagnostics"))
        lay = QVBoxLayout(self)

        text = QTextEdit()
        text.setReadOnly(True)
        _, log_file = default_files()

        lines = []
        lines.append(f"{APP_NAME} {APP_VERSION}")
        lines.append(f"Qt {QT_VERSION_STR}  PyQt {PYQT_VERSION_STR}")
        lines.append(f"Platform: {sys.platform}")
        lines.append(f"App data folder: {user_app_dir()}")
        lines.append(f"Config file: {store.path}  exists={store.path.exists()}")
        lines.append(f"Log file: {log_file}  exists={log_file.exists()}")
        lines.append(f"Preset locations: {', '.join(str(p) for p in store.preset_locations) or '-'}")
        lines.append(f"Presets loaded: {len(store.presets)}")
        player = resource_path(HLS_PLAYER_PAGE)
        lines.append(f"Player page: {player}  exists={player.exists()}")
        text.setPlainText("\n".join(lines))
        lay.addWidget(text)

        btns = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        btns.rejected.connect(self.reject)
        lay.addWidget(btns)


# ---------------- Main window ----------------


class StreamWall(QMainWindow):
    def __init__(self, store: ConfigStore):
        super().__init__()
        self.store = store
        self.config: Optional[Config] = None
        self.layout_state = LayoutState()
        self.tiles: List[SlotTile] = []
        self.main_toolbar: Optional[QToolBar] = None

        self.setWindowTitle(APP_NAME)
        self.resize(1920, 1080)

        self.display_area = QWidget()
        self.display_area.setObjectName("displayArea")
        self.rows_layout = QVBoxLayout(self.display_area)
        self.rows_layout.setContentsMargins(4, 4, 4, 4)
        self.rows_layout.setSpacing(4)
        self.setCentralWidget(self.display_area)

        self.panel = ConfigPanel(self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.panel)
        self.panel.hide()

        self._build_top_toolbar()
        self._build_menus()

        self.panel.count_combo.currentIndexChanged.connect(self.on_source_count_changed)
        self.panel.columns_combo.currentIndexChanged.connect(self.on_columns_changed)
        self.panel.save_button.clicked.connect(self.save_config)

        self.load_config()

    # Toolbar and menus
    def _build_top_toolbar(self):
        tb = QToolBar("Main")
        self.main_toolbar = tb
        tb.setMovable(False)
        tb.setFloatable(False)
        sz = self.style().pixelMetric(QStyle.PixelMetric.PM_SmallIconSize) or 16
        tb.setIconSize(QSize(sz, sz))
        self.addToolBar(Qt.ToolBarArea.TopToolBarArea, tb)

        self.logo_label = QLabel()
        self.logo_label.setObjectName("logo")
        self.title_label = QLabel(APP_NAME)
        self.title_label.setObjectName("appTitle")
        self.title_label.setAccessibleName(tr("UI", "Application title"))
        tb.addWidget(self.logo_label)
        spacer_small = QWidget()
        spacer_small.setFixedWidth(8)
        tb.addWidget(spacer_small)
        tb.addWidget(self.title_label)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        tb.addWidget(spacer)

        self.settings_button = QPushButton(
            self.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogDetailedView), tr("UI", "Settings")
        )
        self.settings_button.setCheckable(True)
        self.settings_button.setToolTip(tr("UI", "Show or hide display settings"))
        self.settings_button.setAccessibleName(tr("UI", "Settings"))
        self.settings_button.toggled.connect(self.panel.setVisible)
        self.panel.visibilityChanged.connect(self.settings_button.setChecked)
        tb.addWidget(self.settings_button)

        self.reload_all_button = QPushButton(
            self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload), tr("UI", "Reload All")
        )
        self.reload_all_button.clicked.connect(self.reload_all)
        self.reload_all_button.setAccessibleName(tr("UI", "Reload all sources"))
        tb.addWidget(self.reload_all_button)

        self.fullscreen_button = QPushButton(
            self.style().standardIcon(QStyle.StandardPixmap.SP_TitleBarMaxButton), tr("UI", "Fullscreen")
        )
        self.fullscreen_button.clicked.connect(self.toggle_fullscreen)
        self.fullscreen_button.setAccessibleName(tr("UI", "Toggle Fullscreen"))
        tb.addWidget(self.fullscreen_button)

        self.shortcut_fullscreen = QAction(self)
        self.shortcut_fullscreen.setShortcut(QKeySequence(Qt.Key.Key_F11))
        self.shortcut_fullscreen.triggered.connect(self.toggle_fullscreen)
        self.addAction(self.shortcut_fullscreen)

        self.shortcut_exit_fullscreen = QAction(self)
        self.shortcut_exit_fullscreen.setShortcut(QKeySequence(Qt.Key.Key_Escape))
        self.shortcut_exit_fullscreen.triggered.connect(self.exit_fullscreen)
        self.addAction(self.shortcut_exit_fullscreen)

    def _build_menus(self):
        mb = self.menuBar()

        file_menu = mb.addMenu(tr("Menu", "File"))
        act_export = QAction(tr("Menu", "Export profile"), self)
        act_export.triggered.connect(self.export_profile)
        file_menu.addAction(act_export)

        act_import = QAction(tr("Menu", "Import profile"), self)
        act_import.triggered.connect(self.import_profile)
        file_menu.addAction(act_import)

        file_menu.addSeparator()
        act_quit = QAction(tr("Menu", "Quit"), self)
        act_quit.setShortcut(QKeySequence.StandardKey.Quit)
        act_quit.triggered.connect(self.close)
        file_menu.addAction(act_quit)

        tools = mb.addMenu(tr("Menu", "Tools"))
        act_diag = QAction(tr("Menu", "Diagnostics"), self)
        act_diag.triggered.connect(self.open_diagnostics)
        tools.addAction(act_diag)

        helpm = mb.addMenu(tr("Menu", "Help"))
        act_about = QAction(tr("Menu", "About"), self)
        act_about.triggered.connect(self.open_about)
        helpm.addAction(act_about)

    # Config
    def load_config(self):
        self.config = ensure_sources(self.store.get())
        log.info(
            "Loaded config: %d sources, %d columns, %d presets",
            len(self.config.sources), self.config.grid_columns, len(self.config.stream_presets),
        )
        self.apply_layout()
        self._populate_panel()

    def save_config(self):
        if not self.config:
            return
        edited = self.config.copy()
        self.panel.sync_into(edited)
        try:
            saved = self.store.set(prepare_for_save(edited))
        except ConfigStoreError as e:
            log.error("Save failed: %s", e)
            QMessageBox.warning(self, APP_NAME, tr("Settings", "Could not save settings"))
            return
        self.config = ensure_sources(saved)
        self._populate_panel()
        self.apply_layout(force=True)
        self.panel.hide()

    def export_profile(self):
        path, _ = QFileDialog.getSaveFileName(self, tr("Settings", "Export profile"), "", "JSON (*.json)")
        if not path:
            return
        try:
            self.store.export_profile(path, version=APP_VERSION)
        except ConfigStoreError as e:
            log.error("%s", e)
            QMessageBox.warning(self, APP_NAME, tr("Settings", "Could not export profile"))

    def import_profile(self):
        path, _ = QFileDialog.getOpenFileName(self, tr("Settings", "Import profile"), "", "JSON (*.json)")
        if not path:
            return
        try:
            self.config = ensure_sources(self.store.import_profile(path))
        except ConfigStoreError as e:
            log.error("%s", e)
            QMessageBox.warning(self, APP_NAME, tr("Settings", "Could not import profile"))
            return
        self._populate_panel()
        self.apply_layout(force=True)
        QMessageBox.information(self, APP_NAME, tr("Settings", "Profile imported and applied."))

    # Layout
    def apply_layout(self, force: bool = False):
        if not self.config:
            return
        plan = reconcile(self.layout_state, self.config, force=force)
        if plan.rebuilt:
            self._rebuild_tiles(plan.grid)

        self.title_label.setText(plan.title)
        self.logo_label.setText(self.config.logo_text)
        self.setWindowTitle(plan.title)

        for r, row in enumerate(plan.grid.rows):
            row_layout = self.rows_layout.itemAt(r).widget().layout()
            for pos, (slot, units) in enumerate(zip(row, stretch_units(row))):
                row_layout.setStretch(pos, units)
                self.tiles[slot.index].set_title(slot.title)
        for idx, address in plan.loads:
            self.tiles[idx].load(address)

    def _rebuild_tiles(self, grid: Grid):
        for tile in self.tiles:
            tile.stop()
        self.tiles = []
        while self.rows_layout.count():
            item = self.rows_layout.takeAt(0)
            wid = item.widget()
            if wid is not None:
                wid.setParent(None)
                wid.deleteLater()

        for row in grid.rows:
            row_widget = QWidget(self.display_area)
            row_widget.setObjectName("displayRow")
            row_widget.setProperty("singleRow", grid.single_row)
            row_layout = QHBoxLayout(row_widget)
            row_layout.setContentsMargins(0, 0, 0, 0)
            row_layout.setSpacing(4)
            for slot in row:
                tile = SlotTile(slot.index, row_widget)
                row_layout.addWidget(tile)
                self.tiles.append(tile)
            self.rows_layout.addWidget(row_widget, 1)
        log.debug("Rebuilt grid: %d rows, %d columns, %d slots", len(grid.rows), grid.columns, len(grid))

    def reload_all(self):
        self.apply_layout(force=True)

    # Settings dock events
    def on_source_count_changed(self, combo_index: int):
        if not self.config:
            return
        self.panel.sync_into(self.config)
        set_source_count(self.config, combo_index + 1)
        self._populate_panel()
        self.apply_layout()

    def on_columns_changed(self, combo_index: int):
        if not self.config:
            return
        set_columns(self.config, combo_index + 1)
        self.apply_layout()

    def on_remove_source(self, index: int):
        if not self.config:
            return
        self.panel.sync_into(self.config)
        if remove_source(self.config, index):
            self._populate_panel()
            self.apply_layout()

    def on_preset_chosen(self, index: int, preset_index: int):
        if not self.config:
            return
        presets = self.config.stream_presets
        if not 0 <= preset_index < len(presets):
            return
        apply_preset(self.config, index, presets[preset_index])
        source = self.config.sources[index]
        self.panel.editors[index].set_fields(source.name, source.url)
        self.apply_layout()

    def on_weight_changed(self, index: int, weight: float):
        if not self.config:
            return
        set_weight(self.config, index, weight)
        self.apply_layout()

    def _populate_panel(self):
        self.panel.populate(self.config)
        for ed in self.panel.editors:
            ed.removeRequested.connect(self.on_remove_source)
            ed.presetChosen.connect(self.on_preset_chosen)
            ed.weightChanged.connect(self.on_weight_changed)

    # Fullscreen
    def toggle_fullscreen(self):
        if self.isFullScreen():
            self.exit_fullscreen()
        else:
            if self.main_toolbar:
                self.main_toolbar.hide()
            self.menuBar().hide()
            self.panel.hide()
            self.showFullScreen()

    def exit_fullscreen(self):
        if not self.isFullScreen():
            return
        if self.main_toolbar:
            self.main_toolbar.show()
        self.menuBar().show()
        self.showMaximized()

    def closeEvent(self, event):
        for tile in self.tiles:
            tile.stop()
        super().closeEvent(event)

    # Dialogs
    def open_diagnostics(self):
        dlg = DiagnosticsDialog(self, self.store)
        dlg.exec()

    def open_about(self):
        msg = QMessageBox(self)
        msg.setWindowTitle(tr("About", "About"))
        msg.setIcon(QMessageBox.Icon.Information)
        msg.setText(
            f"{APP_NAME} {APP_VERSION}\n"
            f"{tr('About','A kiosk wall for cameras, dashboards and remote viewers')}\n\n"
            f"{tr('About','Third party content plays under the respective site terms')}"
        )
        msg.exec()


# ---------------- Theme ----------------


def apply_dark_theme(app: QApplication):
    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(0, 0, 0))
    palette.setColor(QPalette.ColorRole.WindowText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.Base, QColor(25, 25, 25))
    palette.setColor(QPalette.ColorRole.AlternateBase, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorRole.Text, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.Button, QColor(53, 53, 53))
    palette.setColor(QPalette.ColorRole.ButtonText, Qt.GlobalColor.white)
    palette.setColor(QPalette.ColorRole.Highlight, QColor(42, 130, 218))
    palette.setColor(QPalette.ColorRole.HighlightedText, Qt.GlobalColor.black)
    app.setPalette(palette)
    app.setStyleSheet('''
        QLabel#slotName {
            color: #9fd3ff;
            padding: 2px 6px;
        }
        QLabel#logo {
            font-weight: bold;
            color: #2a82da;
        }
        QFrame#sourceEditor {
            border: 1px solid #2a82da;
        }
    ''')


# ---------------- Entry point ----------------


def main():
    QCoreApplication.setApplicationName(APP_NAME)
    QCoreApplication.setOrganizationName(APP_ORG)
    QCoreApplication.setOrganizationDomain(APP_DOMAIN)
    QCoreApplication.setApplicationVersion(APP_VERSION)

    qInstallMessageHandler(qt_message_handler)

    app = QApplication(sys.argv)
    app.setApplicationDisplayName(APP_NAME)
    apply_dark_theme(app)

    config_file, log_file = default_files()
    setup_logging(log_file, debug=debug_enabled())
    log.info("%s %s starting, config %s", APP_NAME, APP_VERSION, config_file)

    store = ConfigStore(config_file, preset_locations())

    win = StreamWall(store)
    win.showMaximized()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
