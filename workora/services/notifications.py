"""
Notification relay: a database outbox plus a background delivery worker.

`NotificationRelay.publish()` is best-effort and never raises: the message is
written to `outbox_messages` and the caller moves on. `OutboxWorker` polls the
outbox, claims each pending row before delivering it (at-most-once) and marks
it `sent` or `failed`. Failed messages are logged, never retried.
"""
import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone

from fastapi import Request

from ..database import Database
from ..models.outbox import OutboxMessage
from .emailer import SmtpMailer

logger = logging.getLogger(__name__)

SEND_MAIL_TOPIC = "send-mail"

Handler = Callable[[dict], None]


class NotificationRelay:
    def __init__(self, database: Database):
        self.database = database
        self._connected = False

    def connect(self) -> None:
        self._connected = True

    def close(self) -> None:
        self._connected = False

    def publish(self, topic: str, message: dict) -> bool:
        """Queue `message` on `topic`. Returns False (after logging) on failure."""
        if not self._connected:
            logger.error("Notification relay is not connected; dropping %s message", topic)
            return False

        try:
            payload = json.dumps(message, ensure_ascii=False)
            db = self.database.session()
            try:
                db.add(OutboxMessage(topic=topic, payload=payload, status="pending"))
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()
        except Exception as e:
            logger.error("Failed to publish message to %s: %s", topic, e)
            return False
        return True


def send_mail_handler(mailer: SmtpMailer) -> Handler:
    def handle(message: dict) -> None:
        mailer.send(
            to=str(message.get("to") or ""),
            subject=str(message.get("subject") or ""),
            html=str(message.get("html") or ""),
        )
    return handle


class OutboxWorker:
    """Drains the outbox on a background thread."""

    def __init__(
        self,
        database: Database,
        handlers: dict[str, Handler],
        *,
        poll_interval_s: float = 2.0,
        batch_size: int = 20,
    ):
        self.database = database
        self.handlers = dict(handlers)
        self.poll_interval_s = poll_interval_s
        self.batch_size = batch_size
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def connect(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="outbox-worker", daemon=True)
        self._thread.start()
        logger.info("Mail service consumer started, listening on %s", ", ".join(self.handlers))

    def close(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=self.poll_interval_s + 5)
        self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Outbox worker iteration failed")
            self._stop.wait(self.poll_interval_s)

    def _claim_batch(self) -> list[tuple[int, str, str]]:
        db = self.database.session()
        try:
            candidates = (
                db.query(OutboxMessage.id)
                .filter(OutboxMessage.status == "pending")
                .order_by(OutboxMessage.id.asc())
                .limit(self.batch_size)
                .all()
            )
            claimed = []
            for (message_id,) in candidates:
                # Conditional update: only one worker wins a given row.
                won = (
                    db.query(OutboxMessage)
                    .filter(OutboxMessage.id == message_id, OutboxMessage.status == "pending")
                    .update({OutboxMessage.status: "processing"}, synchronize_session=False)
                )
                if won:
                    claimed.append(message_id)
            db.commit()

            if not claimed:
                return []
            rows = (
                db.query(OutboxMessage.id, OutboxMessage.topic, OutboxMessage.payload)
                .filter(OutboxMessage.id.in_(claimed))
                .order_by(OutboxMessage.id.asc())
                .all()
            )
            return [(r.id, r.topic, r.payload) for r in rows]
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _finish(self, message_id: int, *, status: str, error: str | None = None) -> None:
        db = self.database.session()
        try:
            db.query(OutboxMessage).filter(OutboxMessage.id == message_id).update(
                {
                    OutboxMessage.status: status,
                    OutboxMessage.error: error,
                    OutboxMessage.processed_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def deliver(self, topic: str, payload: str) -> None:
        handler = self.handlers.get(topic)
        if handler is None:
            raise LookupError(f"No handler registered for topic {topic!r}")
        handler(json.loads(payload))

    def run_once(self) -> int:
        """Deliver one batch of pending messages. Returns how many were delivered."""
        sent = 0
        for message_id, topic, payload in self._claim_batch():
            status, error = "sent", None
            try:
                self.deliver(topic, payload)
            except Exception as e:
                logger.error("Failed to deliver outbox message %s (%s): %s", message_id, topic, e)
                status, error = "failed", f"{type(e).__name__}: {e}"[:2000]
            else:
                sent += 1

            # A bookkeeping failure leaves this row in `processing`; the rest of the batch still goes out.
            try:
                self._finish(message_id, status=status, error=error)
            except Exception:
                logger.exception("Failed to mark outbox message %s as %s", message_id, status)
        return sent


def get_notifier(request: Request) -> NotificationRelay:
    return request.app.state.notifier
