"""
Terminal output for the musicdash CLI.

DashLogger prints one line per event (timestamp, level marker, optional
section tag) and keeps the events so the CLI can print a closing summary.
UserErrors holds the longer messages shown when something goes wrong.
"""

import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, TextIO

RESET = "\033[0m"


class LogLevel(Enum):
    """Console levels: (label, icon, ANSI color)."""

    DEBUG = ("DEBUG", "🔍", "\033[90m")
    INFO = ("INFO", "ℹ️", "\033[94m")
    SUCCESS = ("SUCCESS", "✓", "\033[92m")
    WARNING = ("WARNING", "⚠️", "\033[93m")
    ERROR = ("ERROR", "❌", "\033[91m")
    PROGRESS = ("PROGRESS", "→", "\033[96m")

    def __init__(self, label: str, icon: str, color: str):
        self.label = label
        self.icon = icon
        self.color = color


@dataclass
class LogEntry:
    level: LogLevel
    message: str
    section: Optional[str] = None  # "stats", "news", "playlist"...
    created: datetime = field(default_factory=datetime.now)

    def render(self, use_color: bool = True) -> str:
        clock = self.created.strftime("%H:%M:%S")
        tag = f"({self.section}) " if self.section else ""
        if use_color:
            return f"{self.level.color}[{clock}] {self.level.icon} {tag}{self.message}{RESET}"
        return f"[{clock}] [{self.level.label}] {tag}{self.message}"


class DashLogger:
    """
    Console logger used by the CLI.

    `quiet` keeps errors only; DEBUG lines need `verbose`. Colors are used
    only when the output stream is a terminal. Every shown entry is also
    passed to `on_log` when given.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        use_color: bool = True,
        on_log: Optional[Callable[[LogEntry], None]] = None,
        stream: Optional[TextIO] = None,
    ):
        self.verbose = verbose
        self.quiet = quiet
        self.on_log = on_log
        self._stream = stream
        self.use_color = use_color and self.stream.isatty()
        self._entries: List[LogEntry] = []

    @property
    def stream(self) -> TextIO:
        # Resolved on each write so a redirected sys.stdout is honoured
        return self._stream or sys.stdout

    def is_enabled(self, level: LogLevel) -> bool:
        if self.quiet:
            return level is LogLevel.ERROR
        return level is not LogLevel.DEBUG or self.verbose

    def log(self, level: LogLevel, message: str, section: Optional[str] = None):
        if not self.is_enabled(level):
            return

        entry = LogEntry(level, message, section)
        self._entries.append(entry)
        print(entry.render(self.use_color), file=self.stream)
        if self.on_log is not None:
            self.on_log(entry)

    def debug(self, message: str, section: Optional[str] = None):
        self.log(LogLevel.DEBUG, message, section)

    def info(self, message: str, section: Optional[str] = None):
        self.log(LogLevel.INFO, message, section)

    def success(self, message: str, section: Optional[str] = None):
        self.log(LogLevel.SUCCESS, message, section)

    def warning(self, message: str, section: Optional[str] = None):
        self.log(LogLevel.WARNING, message, section)

    def error(self, message: str, section: Optional[str] = None):
        self.log(LogLevel.ERROR, message, section)

    def progress(self, message: str, section: Optional[str] = None):
        self.log(LogLevel.PROGRESS, message, section)

    def get_entries(self) -> List[LogEntry]:
        return list(self._entries)

    def clear(self):
        self._entries = []

    def format_summary(self) -> str:
        """One line with the number of successes, warnings and errors seen."""
        counts = Counter(entry.level for entry in self._entries)
        labels = (
            (LogLevel.SUCCESS, "completed"),
            (LogLevel.WARNING, "warnings"),
            (LogLevel.ERROR, "errors"),
        )
        parts = [
            f"{level.icon} {counts[level]} {label}" for level, label in labels if counts[level]
        ]
        return " | ".join(parts) or "No activity"


class UserErrors:
    """Messages for the failures a user can act on."""

    @staticmethod
    def music_auth_failed(original_error: str) -> str:
        return (
            f"❌ Could not connect to Spotify: {original_error}\n\n"
            "💡 Check that:\n"
            "   - SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET (or the spotify section\n"
            "     of config.yml) hold your app's credentials\n"
            "   - the redirect URI is registered in the Spotify developer dashboard\n"
            "   - a stale token cache is not in the way (delete it to log in again)"
        )

    @staticmethod
    def config_not_found(path: str) -> str:
        return (
            f"❌ Configuration file not found: {path}\n\n"
            "💡 Copy config.example.yml to config.yml and fill in your keys,\n"
            "   or pass --config with the right path."
        )

    @staticmethod
    def network_error(original_error: str) -> str:
        return f"❌ Could not reach the service: {original_error}\n\n💡 Check your connection."

    @staticmethod
    def rate_limited() -> str:
        return "⚠️ Rate limited by the API. Give it a few minutes before refreshing."

    @staticmethod
    def no_news() -> str:
        return "No news right now. Try another genre or search term."
