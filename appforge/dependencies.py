from fastapi import Request

from .builds import BuildSimulator
from .config import Settings
from .lifecycle import OrderLifecycle
from .orders import OrderRepository
from .payments import PaymentGateway
from .state import DashboardState


# Everything below is built once by create_app and kept on app.state

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> OrderRepository:
    return request.app.state.repository


def get_lifecycle(request: Request) -> OrderLifecycle:
    return request.app.state.lifecycle


def get_simulator(request: Request) -> BuildSimulator:
    return request.app.state.simulator


def get_payments(request: Request) -> PaymentGateway:
    return request.app.state.payments


def get_dashboard(request: Request) -> DashboardState:
    return request.app.state.dashboard
