"""
MediQR composition root.

Builds one store, database, API facade, QR client, lookup service and
session per process. Nothing here is a module-level singleton; call
``build_app`` once at startup and ``shutdown`` at exit.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from .core.config import Settings, settings as default_settings
from .services.api import ClinicAPI
from .services.database import ClinicDatabase
from .services.lookup import PatientLookupService
from .services.qr_client import QrCodeClient
from .services.session import AppSession
from .services.storage import BlobStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(level=(level or default_settings.LOG_LEVEL).upper(), format=LOG_FORMAT)


@dataclass
class MediQRApp:
    settings: Settings
    store: BlobStore
    database: ClinicDatabase
    api: ClinicAPI
    qr_client: QrCodeClient
    lookup: PatientLookupService
    session: AppSession

    async def start(self) -> bool:
        """Resume a stored session; returns True when someone is logged in."""
        return await self.session.bootstrap()

    def shutdown(self) -> None:
        self.store.dispose()
        logger.info("%s shut down", self.settings.APP_NAME)


def build_app(
    settings: Optional[Settings] = None,
    clock: Optional[Callable] = None,
    delay: Optional[float] = None,
    qr_transport: Optional[httpx.BaseTransport] = None,
) -> MediQRApp:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    store = BlobStore(settings.DATABASE_URL)
    database = ClinicDatabase(
        store,
        clock=clock,
        pad_width=settings.ID_PAD_WIDTH,
        patients_key=settings.PATIENTS_KEY,
        records_key=settings.RECORDS_KEY,
        appointments_key=settings.APPOINTMENTS_KEY,
    )
    api = ClinicAPI(database, delay=settings.SIMULATED_DELAY_MS / 1000 if delay is None else delay)
    qr_client = QrCodeClient(
        read_url=settings.QR_READ_URL,
        create_url=settings.QR_CREATE_URL,
        timeout=settings.QR_TIMEOUT,
        api_key=settings.QR_API_KEY,
        transport=qr_transport,
    )
    app = MediQRApp(
        settings=settings,
        store=store,
        database=database,
        api=api,
        qr_client=qr_client,
        lookup=PatientLookupService(api, qr_client),
        session=AppSession(api, store, user_key=settings.SESSION_USER_KEY),
    )
    logger.info("%s %s ready (store: %s)", settings.APP_NAME, settings.VERSION, settings.DATABASE_URL)
    return app
