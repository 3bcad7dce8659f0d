"""DocBuilder: auto-saving backend for guided, AI-assisted PRD writing."""

from __future__ import annotations

__version__ = "0.1.0"
