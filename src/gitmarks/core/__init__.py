# Author: PB
# Maintainer: PB
# Original date: 2025.07.05
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/__init__.py

"""Sync engine: conflict resolution, bulk loading, tracking and the repository."""
