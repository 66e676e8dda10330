# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI exit codes.

Release jobs key off these, so a failed fpm run (RUNTIME_ERROR) can be
told apart from a typo in a distro name (USER_ERROR) or a broken config
file (CONFIG_ERROR). Nothing else is ever returned.
"""

SUCCESS: int = 0
USER_ERROR: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
VALIDATION_ERROR: int = 4
