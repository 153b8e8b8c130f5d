import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from servicemarket.routers import listings

app = FastAPI(title="Service Marketplace Seed Browser", version="0.1.0")


def _parse_csv_env(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


cors_origins = _parse_csv_env("CORS_ORIGINS", "*")
allow_any_origin = len(cors_origins) == 1 and cors_origins[0] == "*"

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    # Browsers reject wildcard CORS with credentials enabled.
    allow_credentials=not allow_any_origin,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(listings.router)


@app.get("/health")
def health():
    return {"status": "ok"}
