from fastapi import Request

from alert_monitor.services.scheduler import AlertScheduler
from alert_monitor.services.storage import JsonStorage
from alert_monitor.services.websocket_manager import ConnectionManager


def get_scheduler(request: Request) -> AlertScheduler:
    """The AlertScheduler built by create_app()"""
    return request.app.state.scheduler


def get_storage(request: Request) -> JsonStorage:
    return request.app.state.scheduler.storage


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connections
