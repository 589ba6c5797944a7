"""
Kafka producer for storefront events
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from confluent_kafka import Producer
from storefront.config import settings

logger = logging.getLogger(__name__)


class StorefrontEventProducer:
    """Kafka producer for catalog and order events"""

    def __init__(self):
        self.bootstrap_servers = settings.kafka_bootstrap_servers
        self.events_topic = settings.kafka_events_topic
        self.flush_timeout = settings.kafka_flush_timeout_seconds

        self.producer = Producer({
            'bootstrap.servers': self.bootstrap_servers,
            'client.id': settings.app_name,
        })

    def _publish_event(self, event_type: str, payload: Dict[str, Any], key: Optional[str] = None):
        """Internal method to publish event to Kafka"""
        event = {
            "type": event_type,
            "eventId": str(uuid.uuid4()),
            "createdAt": datetime.now(timezone.utc).isoformat(),
            **payload
        }

        try:
            # Partition by order or product so events for one entity stay ordered
            kafka_key = key or event.get("orderId") or event.get("productId") or str(uuid.uuid4())

            self.producer.produce(
                self.events_topic,
                key=kafka_key,
                value=json.dumps(event, default=str).encode('utf-8'),
                callback=self._delivery_callback
            )

            self.producer.poll(0)

            logger.info(f"Published {event_type} event to {self.events_topic}")
        except Exception as e:
            logger.error(f"Failed to publish {event_type} event: {e}", exc_info=True)
            raise

    def _delivery_callback(self, err, msg):
        """Callback for message delivery"""
        if err:
            logger.error(f"Message delivery failed: {err}")
        else:
            logger.debug(f"Message delivered to {msg.topic()} [{msg.partition()}]")

    def publish_product_created(self, product_id: str, slug: str, name: str, price: int):
        self._publish_event(
            "PRODUCT_CREATED",
            {"productId": product_id, "slug": slug, "name": name, "price": price},
            key=product_id
        )

    def publish_product_updated(self, product_id: str, slug: str, name: str, price: int):
        self._publish_event(
            "PRODUCT_UPDATED",
            {"productId": product_id, "slug": slug, "name": name, "price": price},
            key=product_id
        )

    def publish_product_deleted(self, product_id: str, slug: str):
        self._publish_event(
            "PRODUCT_DELETED",
            {"productId": product_id, "slug": slug},
            key=product_id
        )

    def publish_order_created(self, order_id: str, order_number: str, user_id: str, total_amount: int, item_count: int):
        self._publish_event(
            "ORDER_CREATED",
            {
                "orderId": order_id,
                "orderNumber": order_number,
                "userId": user_id,
                "totalAmount": total_amount,
                "currency": settings.currency,
                "itemCount": item_count
            },
            key=order_id
        )

    def publish_order_status_changed(self, order_id: str, order_number: str, old_status: str, new_status: str):
        self._publish_event(
            "ORDER_STATUS_CHANGED",
            {
                "orderId": order_id,
                "orderNumber": order_number,
                "oldStatus": old_status,
                "newStatus": new_status
            },
            key=order_id
        )

    def publish_order_cancelled(self, order_id: str, order_number: str, user_id: str):
        self._publish_event(
            "ORDER_CANCELLED",
            {"orderId": order_id, "orderNumber": order_number, "userId": user_id},
            key=order_id
        )

    def flush(self):
        """Flush pending messages, bounded by the configured timeout"""
        remaining = self.producer.flush(self.flush_timeout)
        if remaining:
            logger.warning(f"{remaining} Kafka message(s) still queued after flush timeout")


# Lazy initialization - only create producer when first used
_event_producer_instance = None
_producer_initialization_failed = False


def get_event_producer() -> Optional[StorefrontEventProducer]:
    """Get or create the global event producer instance (lazy initialization)"""
    global _event_producer_instance, _producer_initialization_failed

    if not settings.kafka_enabled or _producer_initialization_failed:
        return None

    if _event_producer_instance is None:
        try:
            _event_producer_instance = StorefrontEventProducer()
            logger.info(f"Initialized Kafka producer for {_event_producer_instance.bootstrap_servers}")
        except Exception as e:
            logger.warning(f"Failed to initialize Kafka producer: {e}. Events will not be published.")
            _producer_initialization_failed = True
            return None
    return _event_producer_instance


class EventProducerProxy:
    """Proxy for lazy Kafka producer initialization

    Publishing never raises: a failed or disabled producer is logged and skipped.
    """

    def _call(self, method: str, event_type: str, *args, **kwargs):
        producer = get_event_producer()
        if producer is None:
            logger.debug(f"Kafka unavailable, skipping {event_type} event")
            return
        try:
            getattr(producer, method)(*args, **kwargs)
        except Exception as e:
            logger.warning(f"Failed to publish {event_type} event: {e}")

    def publish_product_created(self, *args, **kwargs):
        self._call("publish_product_created", "PRODUCT_CREATED", *args, **kwargs)

    def publish_product_updated(self, *args, **kwargs):
        self._call("publish_product_updated", "PRODUCT_UPDATED", *args, **kwargs)

    def publish_product_deleted(self, *args, **kwargs):
        self._call("publish_product_deleted", "PRODUCT_DELETED", *args, **kwargs)

    def publish_order_created(self, *args, **kwargs):
        self._call("publish_order_created", "ORDER_CREATED", *args, **kwargs)

    def publish_order_status_changed(self, *args, **kwargs):
        self._call("publish_order_status_changed", "ORDER_STATUS_CHANGED", *args, **kwargs)

    def publish_order_cancelled(self, *args, **kwargs):
        self._call("publish_order_cancelled", "ORDER_CANCELLED", *args, **kwargs)

    def flush(self):
        producer = get_event_producer()
        if producer:
            try:
                producer.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Kafka producer: {e}")


event_producer = EventProducerProxy()
