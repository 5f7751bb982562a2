"""kiln CLI commands."""

from kiln.commands.bundle import bundle
from kiln.commands.copy import copy_cmd
from kiln.commands.init_cmd import init
from kiln.commands.modules import modules

__all__ = ["bundle", "copy_cmd", "init", "modules"]
