from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class AlertItem(BaseModel):
    id: str
    location: str
    time: str
    timestamp: str
    date: str


class AlertsPage(BaseModel):
    alerts: List[Dict[str, Any]]
    total: int
    limit: int
    offset: int


class MostActiveDay(BaseModel):
    date: str
    count: int


class StatsResponse(BaseModel):
    totalDays: int
    totalAlerts: int
    alertsByLocation: Dict[str, int]
    alertsByHour: Dict[int, int]
    mostActiveDay: Optional[MostActiveDay] = None
    mostActiveLocation: Optional[str] = None


class CheckNowResponse(BaseModel):
    success: bool
    status: str
    candidates: int = 0
    accepted: int = 0
    alerts: List[AlertItem] = []
    error: Optional[str] = None
