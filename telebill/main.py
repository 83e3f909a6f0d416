from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from telebill.core.config import settings
from telebill.routers import billing_cycles, invoices, pricing, usage, webhooks

OPENAPI_TAGS = [
    {"name": "Usage", "description": "Record and report billable telephony usage."},
    {"name": "Invoices", "description": "Generate invoices and manage their lifecycle."},
    {"name": "Billing Cycles", "description": "Inspect periodic billing runs."},
    {"name": "Pricing", "description": "Default and regional rate cards and tax."},
    {"name": "Webhooks", "description": "Inbound payment gateway events."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Billing core for a telephony platform: usage metering, regional pricing, "
        "invoicing and automatic charging."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

app.include_router(usage.router, prefix="/v1/usage", tags=["Usage"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(
    billing_cycles.router,
    prefix="/v1/billing_cycles",
    tags=["Billing Cycles"],
)
app.include_router(pricing.router, prefix="/v1/pricing", tags=["Pricing"])
app.include_router(webhooks.router, prefix="/v1/webhooks", tags=["Webhooks"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
