"""Built-in project context detection.

:class:`Detector` probes a directory, and a bounded chain of its parents,
for marker files such as ``go.mod`` or ``package.json`` and maps the first
hit to a built-in context name. Plugins add their own detection on top of
this (see :mod:`tbox.plugins`); the dispatcher consults plugins first and
falls back to the detector.
"""

from tbox.detection.detector import BUILTIN_MARKERS, MAX_PARENT_LEVELS, Detector

__all__ = ["BUILTIN_MARKERS", "MAX_PARENT_LEVELS", "Detector"]
