# 📄 File: medplant/shared/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Contains the settings that tell the gateway which inference provider, database
# and payment gateway to talk to.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization with exports for settings management
# and the inference client configuration struct.
#
# 🔗 Dependencies:
# - settings.py (application settings)
#
# 🔄 Connected Modules / Calls From:
# - medplant.main (application startup)
# - All modules requiring configuration

from .settings import InferenceConfig, Settings, get_settings

__all__ = [
    "get_settings",
    "Settings",
    "InferenceConfig",
]
