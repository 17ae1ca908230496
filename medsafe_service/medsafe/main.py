from fastapi import FastAPI

from medsafe.api.routes_drugs import router as drugs_router
from medsafe.api.routes_schedule import router as schedule_router
from medsafe.core.api_config import LOG_FILE, LOG_LEVEL
from medsafe.core.logging_config import setup_logging

setup_logging(LOG_LEVEL, LOG_FILE)

app = FastAPI(title="Medication Safety Engine", version="1.0")

app.include_router(schedule_router)
app.include_router(drugs_router)

@app.get("/health")
def health():
    return {"ok": True}
@app.get("/")
def root():
    return {"ok": True, "service": "Medication Safety Engine"}
