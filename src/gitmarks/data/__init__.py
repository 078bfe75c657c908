# Author: PB
# Maintainer: PB
# Original date: 2025.07.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/data/__init__.py

"""Records, paths, codecs and the sync manifest."""
