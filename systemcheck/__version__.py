"""Version information for systemcheck."""

import re

__version__ = "0.3.0"
__version_info__ = tuple(int(re.match(r"\d+", part).group()) for part in __version__.split("."))
