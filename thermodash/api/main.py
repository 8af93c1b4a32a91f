"""
Thermo Dashboard - API Server

Provides:
- Dashboard page (GET /) and its live push channel (WebSocket /ws)
- Device connection control and plaintext device commands
- Threshold / recording / export actions
- Chart snapshots (PNG)
- Chemical database CRUD
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Query, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from thermodash.core.config import Settings, settings
from thermodash.core.database import init_models, make_engine, make_session_maker
from thermodash.dashboard.hub import ClientHub, HubBuzzer
from thermodash.dashboard.page import render_dashboard
from thermodash.dashboard.presenter import ActionResult, DashboardPresenter
from thermodash.services.charts import generate_live_chart, generate_session_report
from thermodash.services.monitor import TemperatureMonitor
from thermodash.services.records import ChemicalPayload, ChemicalStore
from thermodash.telemetry.alert import AlertController, RepeatingTone
from thermodash.telemetry.buffer import TelemetryBuffer
from thermodash.telemetry.session import Connector, TransportSession, default_connector

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


# ==================== REQUEST BODIES ====================

class AddressIn(BaseModel):
    address: str | None = None


class ThresholdIn(BaseModel):
    # Validated by the presenter so bad input gets a readable message
    value: float | str | None = None


class CommandIn(BaseModel):
    command: str


# ==================== WIRING ====================

def build_presenter(config: Settings, connector: Connector | None = None, session_maker=None) -> DashboardPresenter:
    """Assemble session -> monitor -> alert -> presenter for one dashboard."""
    hub = ClientHub()
    session = TransportSession(connector=connector or default_connector(config.connect_timeout))
    buffer = TelemetryBuffer(config.window_capacity)
    tone = RepeatingTone(
        HubBuzzer(hub),
        interval=config.alarm_interval,
        duration=config.alarm_tone_duration,
        frequency=config.alarm_frequency,
    )
    monitor = TemperatureMonitor(session, buffer, AlertController(tone), config.default_threshold)
    store = ChemicalStore(session_maker, config.max_chemicals)
    return DashboardPresenter(monitor, hub, store, config.app_title, config.device_address)


def respond(result: ActionResult, error_status: int = 400, data: Any = None) -> Any:
    if not result.ok:
        return JSONResponse({"error": result.message, "level": result.level}, status_code=error_status)
    return {"ok": True, "message": result.message, "level": result.level, "data": data}


def get_presenter(request: Request) -> DashboardPresenter:
    return request.app.state.presenter


router = APIRouter()


# ==================== PAGE + PUSH CHANNEL ====================

@router.get("/", response_class=HTMLResponse)
async def dashboard_page(request: Request):
    presenter = get_presenter(request)
    return render_dashboard(presenter.title, presenter.session.address or presenter.default_address)


@router.websocket("/ws")
async def dashboard_socket(ws: WebSocket):
    presenter: DashboardPresenter = ws.app.state.presenter
    await ws.accept()
    presenter.hub.add(ws)

    # Send current state immediately
    await presenter.hub.send(ws, presenter.state_view())

    try:
        # Server pushes; anything the browser sends is ignored
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        presenter.hub.discard(ws)


@router.get("/api/state")
async def get_state(request: Request):
    return get_presenter(request).state_view()


# ==================== CONNECTION ====================

@router.post("/api/connection/connect")
async def connect_device(request: Request, body: AddressIn | None = None):
    result = await get_presenter(request).connect(body.address if body else None)
    return respond(result, error_status=409 if result.level == "warning" else 502)


@router.post("/api/connection/disconnect")
async def disconnect_device(request: Request):
    return respond(await get_presenter(request).disconnect())


@router.post("/api/connection/toggle")
async def toggle_connection(request: Request, body: AddressIn | None = None):
    result = await get_presenter(request).toggle_connection(body.address if body else None)
    return respond(result, error_status=409 if result.level == "warning" else 502)


@router.post("/api/device/command")
async def device_command(request: Request, body: CommandIn):
    result = await get_presenter(request).send_command(body.command)
    return respond(result, error_status=409 if result.level == "warning" else 400)


# ==================== RECORDING ====================

@router.post("/api/threshold")
async def set_threshold(request: Request, body: ThresholdIn):
    result = await get_presenter(request).set_threshold(body.value)
    return respond(result, data=result.data)


@router.post("/api/recording/toggle")
async def toggle_recording(request: Request):
    result = await get_presenter(request).toggle_recording()
    return respond(result, data={"recording": result.data})


@router.post("/api/recording/clear")
async def clear_chart(request: Request):
    return respond(await get_presenter(request).clear())


@router.post("/api/recording/save")
async def save_recording(request: Request):
    result = await get_presenter(request).save()
    return respond(result, error_status=409, data={"count": result.data})


@router.get("/api/export.csv")
async def export_csv(request: Request):
    result = get_presenter(request).export()
    if not result.ok:
        return respond(result, error_status=409)

    filename, text = result.data
    return Response(
        content=text.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/api/chart.png")
async def chart_png(request: Request, scope: str = Query("window", pattern="^(window|session)$")):
    presenter = get_presenter(request)
    buffer = presenter.monitor.buffer
    if scope == "session":
        image = await run_in_threadpool(generate_session_report, buffer.samples(), presenter.title)
    else:
        image = await run_in_threadpool(generate_live_chart, buffer.snapshot(), presenter.title)
    return Response(content=image.getvalue(), media_type="image/png")


# ==================== CHEMICALS ====================

@router.get("/api/chemicals")
async def list_chemicals(request: Request):
    return {"records": get_presenter(request).store.records}


@router.post("/api/chemicals")
async def create_chemical(request: Request, payload: ChemicalPayload):
    result = await get_presenter(request).save_chemical(payload)
    return respond(result, data=result.data)


@router.put("/api/chemicals/{backend_id}")
async def update_chemical(request: Request, backend_id: int, payload: ChemicalPayload):
    result = await get_presenter(request).save_chemical(payload, backend_id)
    return respond(result, error_status=404 if result.message == "Chemical not found" else 400, data=result.data)


@router.delete("/api/chemicals/{backend_id}")
async def delete_chemical(request: Request, backend_id: int):
    result = await get_presenter(request).delete_chemical(backend_id)
    return respond(result, error_status=404 if result.message == "Chemical not found" else 400, data=result.data)


# ==================== HEALTH CHECK ====================

@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    presenter = get_presenter(request)
    return {
        "status": "ok",
        "version": APP_VERSION,
        "connection": presenter.session.state.value,
        "alert": presenter.monitor.alert.state.value,
    }


# ==================== APP ====================

def create_app(config: Settings | None = None, connector: Connector | None = None) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_engine = make_engine(config.database_url)
        await init_models(db_engine)

        presenter = build_presenter(config, connector, make_session_maker(db_engine))
        await presenter.start()
        app.state.presenter = presenter
        logger.info(f"🚀 Dashboard ready (device {config.device_address})")

        try:
            yield
        finally:
            await presenter.shutdown()
            await db_engine.dispose()
            logger.info("⏹️ Dashboard stopped")

    app = FastAPI(
        title="Thermo Dashboard API",
        description="Live thermocouple dashboard and chemical database",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
