"""Tray icon showing today's weekday and day number."""

from datetime import datetime

from PySide6.QtCore import Qt, QRect
from PySide6.QtGui import QColor, QFont, QIcon, QPainter, QPixmap
from PySide6.QtWidgets import QMenu, QSystemTrayIcon


def draw_day_icon(now: datetime, size=32):
    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.transparent)
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(QColor("#ffffff"))

    day_font = QFont()
    day_font.setPixelSize(size // 3)
    day_font.setBold(True)
    painter.setFont(day_font)
    painter.drawText(QRect(0, 0, size, size // 3 + 2), Qt.AlignCenter, now.strftime("%a").upper()[:3])

    number_font = QFont()
    number_font.setPixelSize(size // 2)
    number_font.setBold(True)
    painter.setFont(number_font)
    painter.drawText(QRect(0, size // 3, size, size - size // 3), Qt.AlignCenter, str(now.day))
    painter.end()
    return QIcon(pixmap)


class ClockTrayIcon(QSystemTrayIcon):

    def __init__(self, host, app):
        super().__init__(app)
        self.host = host

        self.menu = QMenu()
        self.menu.addAction("Floating Clock Settings...").triggered.connect(host.open_settings)
        self.menu.addSeparator()
        self.menu.addAction("Quit").triggered.connect(app.quit)
        self.setContextMenu(self.menu)
        self.refresh()

    # Called at startup and again by the host's midnight one-shot.
    def refresh(self, now: datetime | None = None):
        now = now or datetime.now()
        self.setIcon(draw_day_icon(now))
        self.setToolTip(now.strftime("%A, %B %d"))
