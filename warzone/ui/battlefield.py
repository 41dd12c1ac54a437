"""Battlefield widget: draws the session's targets and turns clicks into shots."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QPointF, QRectF, Qt, QTimer
from PySide6.QtGui import QBrush, QColor, QLinearGradient, QMouseEvent, QPainter, QPen
from PySide6.QtWidgets import QSizePolicy, QWidget

from warzone.core.session import EFFECT_DURATION_MS, CombatSession
from warzone.ui.colors import WarColors, blend_hex, fade_alpha

TARGET_PX = 48
GRID_STEP_PX = 21
EXPLOSION_PX = 64


class BattlefieldWidget(QWidget):
    """Paints a :class:`CombatSession` and reports clicks as target ids.

    Positions in the session are percentages of the field, so the widget can
    be resized freely. Clicks that hit nothing are reported as ``None``.
    """

    def __init__(
        self,
        *,
        now_ms: Callable[[], int],
        on_shot: Callable[[Optional[int]], None],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._now_ms = now_ms
        self._on_shot = on_shot
        self._session: Optional[CombatSession] = None

        self.setMinimumSize(480, 360)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setCursor(Qt.CrossCursor)

        self._repaint_timer = QTimer(self)
        self._repaint_timer.setInterval(33)
        self._repaint_timer.timeout.connect(self._on_tick)

    def set_session(self, session: Optional[CombatSession]) -> None:
        self._session = session
        if session is None:
            self._repaint_timer.stop()
        self.update()

    def effects_changed(self) -> None:
        if not self._repaint_timer.isActive():
            self._repaint_timer.start()
        self.update()

    def _on_tick(self) -> None:
        if self._session is None or not self._session.effects:
            self._repaint_timer.stop()
        self.update()

    def _to_percent(self, pos: QPointF) -> tuple[float, float]:
        w = max(1, self.width())
        h = max(1, self.height())
        return pos.x() * 100.0 / w, pos.y() * 100.0 / h

    def _to_pixels(self, x: float, y: float) -> QPointF:
        return QPointF(x * self.width() / 100.0, y * self.height() / 100.0)

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.LeftButton or self._session is None or not self._session.is_active:
            super().mousePressEvent(event)
            return
        x, y = self._to_percent(event.position())
        half_w = (TARGET_PX / 2) * 100.0 / max(1, self.width())
        half_h = (TARGET_PX / 2) * 100.0 / max(1, self.height())
        self._on_shot(self._session.target_at(x, y, half_w, half_h))
        event.accept()

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        rect = QRectF(self.rect())

        bg = QLinearGradient(rect.topLeft(), rect.bottomLeft())
        bg.setColorAt(0.0, QColor(WarColors.BG_TOP))
        bg.setColorAt(1.0, QColor(WarColors.BG_BOTTOM))
        painter.fillRect(rect, QBrush(bg))

        grid = QColor(WarColors.GRID)
        grid.setAlpha(14)
        painter.setPen(QPen(grid, 1))
        for gx in range(0, self.width(), GRID_STEP_PX):
            painter.drawLine(gx, 0, gx, self.height())
        for gy in range(0, self.height(), GRID_STEP_PX):
            painter.drawLine(0, gy, self.width(), gy)

        border = QColor(WarColors.PRIMARY)
        border.setAlpha(100)
        painter.setPen(QPen(border, 2))
        painter.setBrush(Qt.NoBrush)
        painter.drawRoundedRect(rect.adjusted(1, 1, -1, -1), 4, 4)

        session = self._session
        if session is None:
            painter.end()
            return

        for target in session.alive_targets():
            center = self._to_pixels(target.x, target.y)
            box = QRectF(center.x() - TARGET_PX / 2, center.y() - TARGET_PX / 2, TARGET_PX, TARGET_PX)
            painter.setPen(QPen(QColor(WarColors.DESTRUCTIVE_TEXT), 2))
            painter.setBrush(QColor(WarColors.DESTRUCTIVE))
            painter.drawRoundedRect(box, 3, 3)
            painter.setPen(QPen(QColor(WarColors.DESTRUCTIVE_TEXT), 2))
            painter.drawLine(QPointF(center.x() - 10, center.y()), QPointF(center.x() + 10, center.y()))
            painter.drawLine(QPointF(center.x(), center.y() - 10), QPointF(center.x(), center.y() + 10))

        now = self._now_ms()
        for effect in session.effects:
            started = effect.expires_at_ms - EFFECT_DURATION_MS
            elapsed = now - started
            alpha = fade_alpha(elapsed, EFFECT_DURATION_MS)
            if alpha <= 0:
                continue
            progress = min(1.0, max(0.0, elapsed / float(EFFECT_DURATION_MS)))
            color = QColor(blend_hex(WarColors.EXPLOSION_CORE, WarColors.EXPLOSION_EDGE, progress))
            color.setAlpha(alpha)
            radius = EXPLOSION_PX / 2 * (0.5 + progress)
            painter.setPen(Qt.NoPen)
            painter.setBrush(color)
            painter.drawEllipse(self._to_pixels(effect.x, effect.y), radius, radius)

        painter.end()
