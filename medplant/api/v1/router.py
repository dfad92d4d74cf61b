# 📄 File: medplant/api/v1/router.py
# 🧭 Purpose (Layman Explanation):
# The switchboard that connects each web address to the module that handles it.
# 🧪 Purpose (Technical Summary):
# Aggregates module routers. Paths are mounted at the root because the mobile client calls
# /identify, /generate-pdf and /webhooks/{provider} directly.
# 🔗 Dependencies:
# FastAPI APIRouter, module presentation routers
# 🔄 Connected Modules / Calls From:
# medplant.main

from fastapi import APIRouter

from medplant.api.v1.health import health_router
from medplant.modules.payments.presentation.api.v1.orders import orders_router
from medplant.modules.payments.presentation.api.v1.webhooks import webhooks_router
from medplant.modules.plant_identification.presentation.api.v1.identify import identify_router
from medplant.modules.reports.presentation.api.v1.reports import reports_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(identify_router, tags=["Plant Identification"])
api_router.include_router(reports_router, tags=["Reports"])
api_router.include_router(orders_router, tags=["Payments"])
api_router.include_router(webhooks_router, tags=["Payments"])
