# 📄 File: medplant/shared/utils/__init__.py

# 🧭 Purpose (Layman Explanation):
# A collection of helpful tools, mainly the logging setup used by every module.

# 🧪 Purpose (Technical Summary):
# Initializes the utilities package exposing structured logging helpers.

# 🔗 Dependencies:
# - logging: Structured logging utilities

# 🔄 Connected Modules / Calls From:
# Used by: All application modules for logging

from .logging import get_logger, log_context, request_id_var, setup_logging

__all__ = [
    "get_logger",
    "log_context",
    "request_id_var",
    "setup_logging",
]
