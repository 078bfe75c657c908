# Author: PB
# Maintainer: PB
# Original date: 2025.07.03
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/config/__init__.py

"""Configuration loading for gitmarks."""
