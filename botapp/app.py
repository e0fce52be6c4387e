#!/usr/bin/env python3
"""
Async telegram bot - wires the monitoring scheduler into the Telegram runtime.
"""

import asyncio
import importlib
import logging
import os
import sys
from pathlib import Path
from typing import Optional

if __name__ == "__main__" and __package__ is None:
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    __package__ = "botapp"

from telegram.ext import Application

from botapp.notifications import MessageLocalization
from botapp.notifier import ChatNotifier, TelegramSender
from infrastructure.settings import AppSettings, get_settings
from logging_config import setup_logging
from monitoring.models import MessageSourceSystem
from monitoring.monitoring_service import MonitoringService
from monitoring.repository import JsonMonitoringRepository
from reservations.gateway import ReservationGateway
from users.manager import UserManager

METRICS_INTERVAL_SECONDS = 300


def load_gateway(factory_path: Optional[str]) -> ReservationGateway:
    """Build the reservation gateway from a ``module:callable`` path."""

    if not factory_path:
        raise ValueError("RESERVATION_GATEWAY_FACTORY is not configured")
    module_name, _, attribute = factory_path.partition(":")
    if not module_name or not attribute:
        raise ValueError(
            f"Invalid gateway factory {factory_path!r}, expected 'module:callable'"
        )
    factory = getattr(importlib.import_module(module_name), attribute)
    return factory()


class MonitoringBotApplication:
    """Assemble dependencies and run the scheduler alongside the Telegram bot."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        gateway: Optional[ReservationGateway] = None,
    ) -> None:
        self.logger = logging.getLogger('MonitoringBot')
        self.settings = settings or get_settings()

        os.makedirs(self.settings.data_directory, exist_ok=True)
        self.repository = JsonMonitoringRepository(
            os.path.join(self.settings.data_directory, self.settings.monitorings_file),
            zone=self.settings.tzinfo,
        )
        self.user_manager = UserManager(
            os.path.join(self.settings.data_directory, self.settings.users_file)
        )
        self.localization = MessageLocalization(self.user_manager)
        self.notifier = ChatNotifier()
        self.gateway = gateway or load_gateway(self.settings.gateway_factory)
        self.service = MonitoringService(
            self.settings,
            self.repository,
            self.gateway,
            self.notifier,
            self.localization,
        )
        self.application = None
        self.metrics_task: Optional[asyncio.Task] = None

    def run(self) -> None:
        """Run the Telegram bot using asyncio-ready Application."""

        if not self.settings.bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN is not configured")

        app = Application.builder().token(self.settings.bot_token).build()
        app.post_init = self._post_init
        app.post_stop = self._post_stop

        self.application = app
        self.logger.info("Starting async bot...")
        app.run_polling()

    async def _post_init(self, application) -> None:
        """Start the scheduler once the Telegram application is ready."""

        self.application = application
        self.notifier.register(MessageSourceSystem.TELEGRAM, TelegramSender(application.bot))
        await self.service.start()
        self.logger.info("Monitoring scheduler started in main event loop")

        self.metrics_task = asyncio.create_task(self._metrics_loop())
        self.logger.info("Metrics monitoring started (%s-second intervals)", METRICS_INTERVAL_SECONDS)
        self.logger.info("Bot started successfully - awaiting messages...")

    async def _post_stop(self, application) -> None:
        """Stop background tasks after the Telegram app stops."""

        self.logger.info("🔴 Starting bot shutdown sequence...")
        if self.metrics_task:
            self.metrics_task.cancel()
            try:
                await self.metrics_task
            except asyncio.CancelledError:
                pass
            self.metrics_task = None
            self.logger.info("✅ Metrics monitoring stopped")

        await self.service.stop()
        self.logger.info("✅ Bot shutdown sequence completed")
        self.application = None

    def log_metrics(self) -> None:
        self.logger.info(
            "=== MONITORING METRICS REPORT ===\n%s\n=================================",
            self.service.get_performance_report(),
        )

    async def _metrics_loop(self) -> None:
        """Periodic metrics logging loop."""

        try:
            while True:
                await asyncio.sleep(METRICS_INTERVAL_SECONDS)
                self.log_metrics()
        except asyncio.CancelledError:
            self.logger.info("Metrics logging task cancelled")
            raise


def main() -> None:
    """Entry point used by both CLI script and module execution."""

    settings = get_settings()
    setup_logging(production_mode=settings.production_mode)

    logger = logging.getLogger('Main')
    logger.info("=" * 50)
    logger.info("Appointment monitoring bot")
    logger.info("=" * 50)

    bot = MonitoringBotApplication(settings)
    try:
        logger.info("🚀 Starting bot...")
        bot.run()
    except KeyboardInterrupt:
        logger.info("✅ Stopped by user (Ctrl+C)")


if __name__ == '__main__':
    main()
