# Author: PB
# Maintainer: PB
# Original date: 2025.07.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/__init__.py

"""gitmarks - version-controlled on-disk mirror of a bookmark database."""

__version__ = "0.4.0"
