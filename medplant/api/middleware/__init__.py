# 📄 File: medplant/api/middleware/__init__.py
# 🧭 Purpose (Layman Explanation):
# Groups the request "checkpoints" every call passes through.
# 🧪 Purpose (Technical Summary):
# Exports the error handling and request logging middleware.
# 🔗 Dependencies:
# error_handling.py, logging.py
# 🔄 Connected Modules / Calls From:
# medplant.main

from .error_handling import ErrorHandlingMiddleware, internal_error_envelope
from .logging import RequestLoggingMiddleware

__all__ = ["ErrorHandlingMiddleware", "RequestLoggingMiddleware", "internal_error_envelope"]
