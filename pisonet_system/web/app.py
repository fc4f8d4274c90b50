"""FastAPI-based web interface for the pisonet shop."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Form, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from ..config import ShopOptions
from ..errors import ShopError, ValidationError
from ..services import Clock, ShopService
from ..storage import JsonFileGateway, PersistenceGateway

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc


def redirect_home(**params: object) -> RedirectResponse:
    target = "/"
    if params:
        target += "?" + urlencode(params)
    return RedirectResponse(target, status_code=303)


def create_app(
    options: Optional[ShopOptions] = None,
    gateway: Optional[PersistenceGateway] = None,
    *,
    clock: Optional[Clock] = None,
) -> FastAPI:
    options = options or ShopOptions.from_env()
    gateway = gateway or JsonFileGateway(options=options)
    service = ShopService(gateway, options=options, clock=clock)

    app = FastAPI(title="Pisonet Shop")
    app.state.shop_service = service

    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return redirect_home(error=str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(
            str(error["loc"][-1]) for error in exc.errors() if error.get("loc")
        )
        logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, fields)
        return redirect_home(error=f"Invalid input: {fields or 'request'}")

    @app.get("/")
    async def dashboard(request: Request):
        service: ShopService = request.app.state.shop_service
        stations = service.stations.list()
        station_names = {station.id: station.name for station in stations}
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "stations": stations,
                "station_names": station_names,
                "available": service.stations.available(),
                "active_sessions": service.active_sessions(),
                "products": service.inventory.list(),
                "summary": service.summary(),
                "error": request.query_params.get("error"),
                "charged": request.query_params.get("charged"),
            },
        )

    @app.get("/reports")
    async def reports(request: Request, day: Optional[str] = None):
        service: ShopService = request.app.state.shop_service
        summary = service.summary(parse_day(day))
        return templates.TemplateResponse(
            request,
            "reports.html",
            {"summary": summary, "first_weekday": service.options.first_weekday},
        )

    @app.post("/stations")
    async def create_station(
        request: Request,
        name: str = Form(...),
        rate: str = Form(...),
    ):
        service: ShopService = request.app.state.shop_service
        service.add_station(name, rate)
        return redirect_home()

    @app.post("/stations/{station_id}/edit")
    async def edit_station(
        station_id: int,
        request: Request,
        name: str = Form(""),
        rate: str = Form(""),
    ):
        service: ShopService = request.app.state.shop_service
        service.edit_station(station_id, name=name, rate=rate)
        return redirect_home()

    @app.post("/stations/{station_id}/remove")
    async def remove_station(station_id: int, request: Request):
        service: ShopService = request.app.state.shop_service
        service.remove_station(station_id)
        return redirect_home()

    @app.post("/products")
    async def create_product(
        request: Request,
        name: str = Form(...),
        price: str = Form(...),
        stock: str = Form("0"),
    ):
        service: ShopService = request.app.state.shop_service
        service.add_product(name, price, stock)
        return redirect_home()

    @app.post("/products/{product_id}/edit")
    async def edit_product(
        product_id: int,
        request: Request,
        name: str = Form(""),
        price: str = Form(""),
        stock: str = Form(""),
    ):
        service: ShopService = request.app.state.shop_service
        service.edit_product(product_id, name=name, price=price, stock=stock)
        return redirect_home()

    @app.post("/products/{product_id}/remove")
    async def remove_product(product_id: int, request: Request):
        service: ShopService = request.app.state.shop_service
        service.remove_product(product_id)
        return redirect_home()

    @app.post("/products/{product_id}/sell")
    async def sell_product(
        product_id: int,
        request: Request,
        quantity: str = Form(...),
    ):
        service: ShopService = request.app.state.shop_service
        transaction = service.sell_product(product_id, quantity)
        return redirect_home(charged=str(transaction.amount))

    @app.post("/sessions")
    async def start_session(
        request: Request,
        station_id: int = Form(...),
        customer_name: str = Form(""),
    ):
        service: ShopService = request.app.state.shop_service
        service.start_session(station_id, customer_name)
        return redirect_home()

    @app.post("/sessions/{session_id}/stop")
    async def stop_session(session_id: str, request: Request):
        service: ShopService = request.app.state.shop_service
        amount = service.stop_session(session_id)
        return redirect_home(charged=str(amount))

    return app


__all__ = ["create_app"]
