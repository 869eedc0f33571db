"""
SageProvisioner - one-shot SQL Server, IIS and ODBC provisioning for Sage hosts
"""

__version__ = "0.1.0"

from .core import SageProvisioner
from .errors import ProvisionerError

__all__ = ["SageProvisioner", "ProvisionerError"]
