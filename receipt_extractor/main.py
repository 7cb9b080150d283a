import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from receipt_extractor.config import settings
from receipt_extractor.routers import receipts

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Heuristic expense field extraction from receipt OCR lines",
    version="0.1.0",
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(receipts.router)


@app.get("/")
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": "0.1.0",
        "locale": settings.LOCALE,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
