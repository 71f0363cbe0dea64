# app/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1.myjkkn import router as myjkkn_router
from app.api.v1.myjkkn_proxy import router as myjkkn_proxy_router
from app.api.v1.service_requests import router as service_requests_router
from app.api.v1.services import categories_router as service_categories_router
from app.api.v1.services import router as services_router
from app.api.v1.users import router as users_router
from app.api.v1.notifications import router as notifications_router
from app.api.v1.transactions import router as transactions_router
from app.api.v1.analytics import router as analytics_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="JKKN Service Portal Backend",
    version="0.1.0",
)

# the admin UI and the MyJKKN proxy are called from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(myjkkn_router)
app.include_router(myjkkn_proxy_router)
app.include_router(service_requests_router)
app.include_router(service_categories_router)
app.include_router(services_router)
app.include_router(users_router)
app.include_router(notifications_router)
app.include_router(transactions_router)
app.include_router(analytics_router)
