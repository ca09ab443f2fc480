"""Per-task time tracking synchronized to Yandex Tracker."""

__version__ = "0.1.0"
