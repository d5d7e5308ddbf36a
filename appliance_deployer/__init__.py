"""
Appliance deployer.

Deploys and upgrades a management appliance and keeps the stemcells its
installed products depend on in sync across upgrades.
"""

__version__ = "0.3.0"
