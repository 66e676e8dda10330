# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""canarypkg: build and publish OS packages for the appcanary agent."""

__version__ = "0.3.0"
