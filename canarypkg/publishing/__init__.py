# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Pushing built packages to the package hosting service via package_cloud."""
