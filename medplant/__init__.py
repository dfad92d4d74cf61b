# 📄 File: medplant/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'medplant' folder as the home of our medicinal plant identification gateway
# and records the version and package information.
#
# 🧪 Purpose (Technical Summary):
# Application package initialization with version info and package metadata
# for the MedPlant FastAPI gateway.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - main.py (application entry point)
# - Deployment scripts

"""
MedPlant Gateway - Medicinal Plant Identification API

A thin API gateway that identifies medicinal plants from photos using a
multimodal inference provider, renders PDF reports, and processes payment
webhooks for subscription and credit entitlements.
"""

__version__ = "1.0.0"
__title__ = "MedPlant Gateway API"
__description__ = "Medicinal plant identification gateway"
__license__ = "MIT"

__all__ = [
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
