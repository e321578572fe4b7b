import json
import logging
from datetime import datetime
from typing import Optional

import paho.mqtt.client as mqtt

from production_tracker.collaborators.interfaces import IAdapter, Notifier

logger = logging.getLogger("Notifier")

_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class LogNotifier(Notifier):
    """Writes user notifications to the log."""
    def notify(self, message: str, level: str = "info") -> None:
        logger.log(_LEVELS.get(level, logging.INFO), f"[{level.upper()}] {message}")


class MQTTNotifier(Notifier, IAdapter):
    """
    Publishes notifications to an MQTT Broker as JSON.
    Payload: {"level": ..., "message": ..., "timestamp": ...}
    """
    def __init__(self, broker: str, port: int, topic: str, client: Optional[mqtt.Client] = None):
        self.broker = broker
        self.port = port
        self.topic = topic
        self.client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

    def connect(self):
        try:
            logger.info(f"Connecting to MQTT Broker {self.broker}:{self.port}...")
            self.client.connect(self.broker, self.port, 60)
            self.client.loop_start()
            logger.info("MQTT Connected")
        except Exception as e:
            # Notifications degrade to log-only; tracking continues
            logger.error(f"MQTT Connection Failed: {e}")

    def disconnect(self):
        self.client.loop_stop()
        self.client.disconnect()

    def notify(self, message: str, level: str = "info") -> None:
        payload = json.dumps({
            "level": level,
            "message": message,
            "timestamp": datetime.now().astimezone().isoformat(),
        })
        try:
            # loop_start() thread does the network I/O; publish only queues
            self.client.publish(self.topic, payload, qos=0, retain=False)
        except Exception as e:
            logger.error(f"MQTT Publish Failed: {e}")
