# SPDX-License-Identifier: MIT
"""Application services.

Services implement reconciliation: value layers (values/), the release
backend (helm/), cluster access (kube) and modules (modules/).
"""
