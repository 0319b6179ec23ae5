import logging
from http import HTTPStatus

from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse

from .address import SENSOR_CATEGORIES, Category, parse_sensor_path
from .errors import MalformedAddress, SerializationFailure
from .sensors import SensorTranslator
from .utils import now_iso

logger = logging.getLogger(__name__)


def create_app(translator: SensorTranslator) -> FastAPI:
    app = FastAPI(title="shelly2mqtt")

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "ts": now_iso(), "service": "shelly2mqtt"}

    def add_sensor_route(category: Category):
        def sensor_webhook(rest: str):
            path = f"/{category.value}/{rest}"
            logger.info(f"[http] {category.value}: {path}")
            try:
                address = parse_sensor_path(category, path)
            except MalformedAddress as e:
                # Shelly devices ignore the response; nothing is written back.
                logger.warning(f"[http] {e}")
                return Response(status_code=HTTPStatus.OK)

            try:
                translator.handle(category, address.room, address.command)
            except SerializationFailure as e:
                logger.error(f"[http] {e}")
                return PlainTextResponse(str(e), status_code=HTTPStatus.INTERNAL_SERVER_ERROR)
            return Response(status_code=HTTPStatus.OK)

        app.add_api_route(
            f"/{category.value}/{{rest:path}}",
            sensor_webhook,
            methods=["GET", "POST"],
            name=f"{category.value}_webhook",
        )

    for category in SENSOR_CATEGORIES:
        add_sensor_route(category)

    return app
