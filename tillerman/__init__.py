# SPDX-License-Identifier: MIT
"""Module orchestration and Helm release reconciliation."""

__version__ = "0.1.0"
