"""
Teacher Application - host violation channel dan notifikasi violation guru
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Set, Tuple

from shared.context import NotificationContext
from shared.database.database_manager import DatabaseManager
from shared.errors import RepositoryError, SubscriptionError
from shared.networking.client import WebSocketViolationChannel
from shared.networking.server import ViolationChannelServer
from shared.notifications.dismissal_store import JsonDismissalStore
from shared.notifications.formatting import describe_violation
from shared.notifications.models import Violation
from shared.notifications.reconciler import SecurityNotificationPipeline
from shared.utils.config_loader import ConfigLoader

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/teacher_config.json")
DEFAULT_TEMPLATE_PATH = Path("config/teacher_config_template.json")


class TeacherApp:
    """
    Aplikasi guru (headless)

    Tanpa server.remote_url, aplikasi meng-host ViolationChannelServer dan
    subscribe lewat channel lokal server. Dengan server.remote_url, aplikasi
    subscribe ke server lain lewat WebSocket.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH,
                 template_path: Path = DEFAULT_TEMPLATE_PATH, config: dict = None):
        if config is None:
            config = ConfigLoader.load_config(str(config_path), str(template_path))
        self.config = config

        self.teacher_id = str(ConfigLoader.get(config, 'teacher.id', '') or '')
        if not self.teacher_id:
            raise ValueError("teacher.id must be set in the teacher config")

        self.db_manager = DatabaseManager(ConfigLoader.get(config, 'database.path', 'data/kuis.db'))

        remote_url = ConfigLoader.get(config, 'server.remote_url')
        if remote_url:
            self.server: Optional[ViolationChannelServer] = None
            channel = WebSocketViolationChannel(remote_url)
        else:
            self.server = ViolationChannelServer(
                self.db_manager,
                host=ConfigLoader.get(config, 'server.host', '0.0.0.0'),
                port=int(ConfigLoader.get(config, 'server.port', 8765))
            )
            channel = self.server.local_channel

        dismissal_dir = ConfigLoader.get(config, 'notifications.dismissal_dir', 'data/dismissed')
        self.context = NotificationContext(
            violations=self.db_manager,
            channel=channel,
            dismissals=JsonDismissalStore(self.teacher_id, dismissal_dir),
            history_limit=ConfigLoader.get(config, 'notifications.history_limit', 5)
        )
        self.pipeline = SecurityNotificationPipeline(self.context)
        self.pipeline.set_change_callback(self._on_violations_changed)
        self.pipeline.set_lost_callback(self._on_subscription_lost)

        self._announced: Set[str] = set()
        self._stop_event: Optional[asyncio.Event] = None

    def _on_violations_changed(self, violations: Tuple[Violation, ...]):
        """Log violation yang baru muncul di daftar visible"""
        for violation in violations:
            if violation.id in self._announced:
                continue
            self._announced.add(violation.id)
            logger.warning("[VIOLATION] %s", describe_violation(violation))

    def _on_subscription_lost(self, error: SubscriptionError):
        """Feed live putus: hentikan aplikasi supaya run() melaporkan error"""
        logger.error("Stopping teacher app, live violation feed lost: %s", error)
        self.stop()

    def dismiss(self, violation_id: str) -> bool:
        """Dismiss notifikasi violation"""
        return self.pipeline.dismiss(violation_id)

    async def start_notifications(self):
        """
        Initialize pipeline notifikasi

        RepositoryError hanya di-log karena subscription tetap aktif.
        """
        try:
            await self.pipeline.initialize(self.teacher_id)
        except RepositoryError as e:
            logger.error("Violation history unavailable, showing live violations only: %s", e)

    async def run(self):
        """
        Jalankan server (jika lokal) dan pipeline sampai stop() dipanggil

        Raises:
            SubscriptionError: subscribe gagal atau feed live putus
        """
        self._stop_event = asyncio.Event()
        waiters = [asyncio.create_task(self._stop_event.wait())]
        if self.server is not None:
            waiters.append(asyncio.create_task(self.server.start()))

        try:
            await self.start_notifications()
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            if self.pipeline.subscription_error is not None:
                raise self.pipeline.subscription_error
        except SubscriptionError as e:
            logger.error("Violation channel subscription failed: %s", e)
            raise
        finally:
            await self.pipeline.teardown()
            if self.server is not None:
                self.server.stop()
            for task in waiters:
                task.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)

    def stop(self):
        """Stop aplikasi"""
        if self._stop_event is not None:
            self._stop_event.set()
