from fastapi import APIRouter
from eyewitness.api.endpoints import alerts, decisions, thresholds, satellites, ingestion, space_weather

api_router = APIRouter()

api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_router.include_router(decisions.router, prefix="/decisions", tags=["decisions"])
api_router.include_router(thresholds.router, prefix="/thresholds", tags=["thresholds"])
api_router.include_router(satellites.router, prefix="/satellites", tags=["satellites"])
api_router.include_router(space_weather.router, prefix="/space-weather", tags=["space-weather"])
api_router.include_router(ingestion.router, prefix="/ingest", tags=["ingestion"])
