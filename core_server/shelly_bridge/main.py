import sys
import logging
import argparse

import uvicorn

from .config import (LISTEN_ADDRESS, MQTT_BROKER, MQTT_TOPIC, ROUTING_CONFIG_PATH,
                     KEEPALIVE, HTTP_TIMEOUT, LOG_LEVEL, BridgeConfig)
from .utils import setup_logging
from .errors import TransportFailure
from .routing import RoomRouter, load_routes
from .relay import RelayCommandHandler
from .mqtt import MqttBridgeClient
from .sensors import SensorTranslator
from .api import create_app

logger = logging.getLogger("shelly2mqtt")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bridge Shelly HTTP actions and MQTT")
    parser.add_argument("--listen", default=LISTEN_ADDRESS,
                        help="listen address for HTTP API (e.g. for Shelly buttons)")
    parser.add_argument("--mqtt_broker", default=MQTT_BROKER, help="MQTT broker address")
    parser.add_argument("--mqtt_topic", default=MQTT_TOPIC, help="MQTT topic prefix")
    parser.add_argument("--routes", default=ROUTING_CONFIG_PATH,
                        help="JSON file with room -> relay endpoint routes")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> BridgeConfig:
    return BridgeConfig.from_values(
        listen=args.listen,
        broker=args.mqtt_broker,
        topic_prefix=args.mqtt_topic,
        routing_config_path=args.routes,
        keepalive=KEEPALIVE,
        http_timeout=HTTP_TIMEOUT,
    )


def main(argv=None):
    args = parse_args(argv)

    try:
        setup_logging(LOG_LEVEL)
        config = build_config(args)
        router = RoomRouter(load_routes(config.routing_config_path))
    except (OSError, ValueError) as e:
        setup_logging()
        logger.error(f"[boot] invalid configuration: {e}")
        sys.exit(1)

    relay = RelayCommandHandler(config, router)
    mqtt_client = MqttBridgeClient(config, on_command=relay.on_message)
    try:
        mqtt_client.start()
    except TransportFailure as e:
        logger.error(f"[boot] {e}")
        relay.close()
        sys.exit(1)

    app = create_app(SensorTranslator(config, mqtt_client))

    logger.info(f"[boot] python={sys.version}")
    logger.info(f"[boot] MQTT {config.mqtt_host}:{config.mqtt_port} prefix={config.topic_prefix!r}")
    logger.info(f"[boot] routes: {dict(router.table)}")
    logger.info(f"[boot] listening on {config.listen_host}:{config.listen_port}")

    try:
        uvicorn.run(app, host=config.listen_host, port=config.listen_port, log_level="warning", access_log=False)
    finally:
        mqtt_client.stop()
        relay.close()


if __name__ == "__main__":
    main()
