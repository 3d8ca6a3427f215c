"""
systemcheck - CPU and memory resource diagnostics

Reports how much CPU and memory the current process really has, telling apart
the host's hardware capacity from limits imposed by cgroups (containers,
systemd slices).
"""

from .__version__ import __version__, __version_info__

__all__ = ["__version__", "__version_info__"]
