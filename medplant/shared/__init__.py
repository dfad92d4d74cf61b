# 📄 File: medplant/shared/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Marks the 'shared' folder as a Python package containing common tools
# that every part of the gateway can use, like configuration, errors and logging.
#
# 🧪 Purpose (Technical Summary):
# Shared kernel package for configuration, exception taxonomy, logging,
# database sessions and the outbound HTTP client.
#
# 🔗 Dependencies:
# - Python packaging system
#
# 🔄 Connected Modules / Calls From:
# - All application modules importing shared utilities
