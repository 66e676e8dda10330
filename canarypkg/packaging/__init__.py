# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package build pipeline.

Recipes are expanded into build units (one per release and architecture),
each unit is rendered into an fpm command, the commands run one at a time,
and the successful ones are recorded in a build manifest. No package format
is encoded here; fpm does all of that.
"""
