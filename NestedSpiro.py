import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from PySide6.QtCore import QTimer, Qt
from PySide6.QtGui import QColor, QFont, QPainter
from PySide6.QtWidgets import QApplication, QWidget

import nested_math as nm
from drawing import BASE_CIRCLE_COLOR, draw_circle, draw_marker, draw_mechanism, draw_text_block
from localisation import resolve_language, tr
from spiro_config import AppConfig, load_config, save_config
from trace_session import FrameState, TraceSession

BACKGROUND_COLOR = QColor(15, 18, 22)
PNG_NAME_PATTERN = "nested_pss_{:03d}.png"

_LOGGER = logging.getLogger(__name__)


class NestedSpiroWindow(QWidget):
    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        config_path: Optional[str] = None,
        persist: bool = True,
    ):
        super().__init__()

        self.config = config if config is not None else load_config(config_path)
        self._config_path = config_path
        self._persist = persist
        self.language = resolve_language(self.config.language)

        # La chaîne est partagée avec la session : on la modifie en place
        self.chain: List[nm.Stage] = self.config.stages

        width, height = self.config.width, self.config.height
        self.setFixedSize(width, height)
        self.setWindowTitle(tr(self.language, "window_title"))
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        self.origin = (width * 0.5, height * 0.5)
        self.session = TraceSession(
            self.chain,
            base_radius=self.config.base_radius,
            origin=self.origin,
            width=width,
            height=height,
            settings=self.config.trace,
        )

        # Affichage
        self.show_mechanism: bool = self.config.show_mechanism
        self.help_visible: bool = False
        self.selected: int = 0
        self.sim_time: float = 0.0
        self._png_counter = 0

        self._hud_font = QFont("Consolas")
        self._hud_font.setStyleHint(QFont.StyleHint.Monospace)
        self._hud_font.setPixelSize(16)
        self._help_font = QFont(self._hud_font)
        self._help_font.setPixelSize(18)

        # ----- Animation -----
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(1000 / max(1, self.config.fps))))
        self._timer.timeout.connect(self._on_tick)
        self._last_time: Optional[float] = None

        self._frame: FrameState = self.session.tick(self.sim_time)

    # ----- Boucle -----

    @property
    def frame(self) -> FrameState:
        return self._frame

    def start(self):
        self._last_time = None
        self._timer.start()

    def stop(self):
        self._timer.stop()
        self._last_time = None

    def _on_tick(self):
        now = time.monotonic()
        if self._last_time is None:
            self._last_time = now
        dt = max(0.0, now - self._last_time)
        self._last_time = now
        self.advance(dt)
        self.update()

    def advance(self, dt: float) -> FrameState:
        # simulation en pause tant que l'aide est affichée
        paused = self.help_visible
        if not paused:
            self.sim_time += dt
        self._frame = self.session.tick(self.sim_time, advance_trace=not paused)
        return self._frame

    # ----- Commandes -----

    def _wrap_index(self, i: int) -> int:
        n = len(self.chain)
        if n == 0:
            return 0
        return i % n

    def _selected_stage(self) -> Optional[nm.Stage]:
        if not self.chain:
            return None
        self.selected = self._wrap_index(self.selected)
        return self.chain[self.selected]

    def set_base_radius(self, radius: float):
        radius = max(self.config.min_base_radius, radius)
        self.config.base_radius = radius
        self.session.base_radius = radius

    def handle_key(self, key) -> bool:
        """Applique une touche ; renvoie False si elle n'est pas gérée."""
        stage = self._selected_stage()
        step = self.config.speed_step

        if key == Qt.Key.Key_Escape:
            self.close()
        elif key == Qt.Key.Key_Space:
            self.session.toggle_tracing()
        elif key == Qt.Key.Key_M:
            self.show_mechanism = not self.show_mechanism
        elif key == Qt.Key.Key_C:
            self.session.clear()
        elif key == Qt.Key.Key_P:
            self.save_png()
        elif key in (Qt.Key.Key_H, Qt.Key.Key_F1):
            self.help_visible = not self.help_visible
        elif key == Qt.Key.Key_PageUp:
            self.selected = self._wrap_index(self.selected + 1)
        elif key == Qt.Key.Key_PageDown:
            self.selected = self._wrap_index(self.selected - 1)
        elif key == Qt.Key.Key_Up:
            self.set_base_radius(self.config.base_radius + self.config.base_radius_step)
        elif key == Qt.Key.Key_Down:
            self.set_base_radius(self.config.base_radius - self.config.base_radius_step)
        elif stage is not None and key == Qt.Key.Key_E:
            stage.rolls_outside = not stage.rolls_outside
        elif stage is not None and key == Qt.Key.Key_BracketLeft:
            stage.angular_velocity -= step
        elif stage is not None and key == Qt.Key.Key_BracketRight:
            stage.angular_velocity += step
        elif stage is not None and key == Qt.Key.Key_Z:
            stage.angular_velocity = -stage.angular_velocity
        else:
            return False
        self.update()
        return True

    def keyPressEvent(self, event):
        if not self.handle_key(event.key()):
            super().keyPressEvent(event)

    def save_png(self, filename: Optional[str] = None) -> Optional[str]:
        if filename is None:
            filename = PNG_NAME_PATTERN.format(self._png_counter)
            self._png_counter += 1
        image = self.session.accumulator.surface()
        if not image.save(filename, "PNG"):
            _LOGGER.warning("Could not save trace image to %s", filename)
            return None
        _LOGGER.info("%s %s", tr(self.language, "png_saved"), os.path.abspath(filename))
        return filename

    # ----- Rendu -----

    def hud_text(self) -> str:
        lang = self.language
        lines = []
        stage = self._selected_stage()
        if stage is not None:
            relation = tr(lang, "yes") if stage.rolls_outside else tr(lang, "no")
            lines += [
                tr(lang, "hud_selection", index=self.selected + 1),
                tr(lang, "hud_speed", speed=stage.angular_velocity),
                tr(lang, "hud_size", size=stage.radius),
                tr(lang, "hud_outside", value=relation),
            ]
        if not self.session.tracing:
            lines.append(tr(lang, "hud_tracing_off"))
        if self._frame.error:
            lines.append(tr(lang, "hud_error", error=self._frame.error))
        lines.append(tr(lang, "hud_help_hint"))
        return "\n".join(lines)

    def help_text(self) -> str:
        lang = self.language
        rows = [
            tr(lang, "help_title"),
            "------------",
            tr(lang, "help_general"),
            f"  Esc          {tr(lang, 'help_quit')}",
            f"  Space        {tr(lang, 'help_trace')}",
            f"  C            {tr(lang, 'help_clear')}",
            f"  P            {tr(lang, 'help_png')}",
            f"  M            {tr(lang, 'help_mechanism')}",
            f"  H / F1       {tr(lang, 'help_toggle_help')}",
            "",
            tr(lang, "help_stage"),
            f"  PgUp / PgDn  {tr(lang, 'help_select')}",
            f"  [ / ]        {tr(lang, 'help_speed')}",
            f"  Z            {tr(lang, 'help_flip')}",
            f"  E            {tr(lang, 'help_relation')}",
            "",
            tr(lang, "help_base"),
            f"  Up / Down    {tr(lang, 'help_radius')}",
        ]
        return "\n".join(rows)

    def paintEvent(self, event):
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            painter.fillRect(self.rect(), BACKGROUND_COLOR)
            painter.drawImage(0, 0, self.session.accumulator.surface())
            draw_circle(painter, self.origin, self.config.base_radius, color=BASE_CIRCLE_COLOR)

            frame = self._frame
            if frame.pen is not None:
                if self.show_mechanism:
                    draw_mechanism(
                        painter,
                        centers=frame.centers,
                        radii=[s.radius for s in self.chain],
                        pen_pos=frame.pen,
                        selected=self.selected,
                    )
                draw_marker(painter, frame.pen)

            draw_text_block(painter, self.hud_text(), pos=(12.0, 10.0), font=self._hud_font)
            if self.help_visible:
                draw_text_block(
                    painter, self.help_text(), pos=(40.0, 40.0), font=self._help_font, boxed=True
                )
        finally:
            painter.end()

    def closeEvent(self, event):
        try:
            self.stop()
            if self._persist:
                save_config(self.config, self._config_path)
        finally:
            super().closeEvent(event)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Nested spirograph animator.")
    parser.add_argument("--config", help="Path to a JSON config file.")
    parser.add_argument(
        "--reset-config",
        action="store_true",
        help="Ignore the saved config and start from the default chain.",
    )
    parser.add_argument("--language", help="UI language code (en, fr).")
    parser.add_argument(
        "--backend",
        default="python",
        help="Math backend used for sub-sampling (python, numba).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("NestedSpiro")

    try:
        nm.set_backend(args.backend)
    except ValueError as exc:
        _LOGGER.warning("%s, using %s", exc, nm.get_backend_name())

    config = AppConfig() if args.reset_config else load_config(args.config)
    if args.language:
        config.language = args.language

    window = NestedSpiroWindow(config, config_path=args.config)
    window.show()
    window.start()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
