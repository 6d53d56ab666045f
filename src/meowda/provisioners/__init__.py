"""Provisioners that materialize environments and manage their packages."""

from meowda.provisioners.provisioner import Provisioner
from meowda.provisioners.uv import UvProvisioner

__all__ = ["Provisioner", "UvProvisioner"]
