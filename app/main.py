import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from app.api import order, packages
from app.config import ORDER_STORE_BACKENDS, settings
from app.db_init import init_db
from app.errors import ConfigReadError
from app.models import create_db_engine, create_session_factory
from app.services.atlantic_gateway import AtlanticGateway
from app.services.catalog import StoreConfig, ensure_config_file, load_store_config
from app.services.order_service import OrderService
from app.services.order_store import InMemoryOrderStore, OrderStore, SqlOrderStore
from app.services.panel_client import PanelClient
from app.webhooks import atlantic_callback

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app.startup")


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.hostname)


def _strip_wrapping_quotes(value: str) -> str:
    stripped = value.strip()
    if len(stripped) >= 2 and stripped[0] == stripped[-1] and stripped[0] in {"'", '"'}:
        return stripped[1:-1].strip()
    return stripped


def _get_effective_cors_origins(cors_raw: str) -> list[str]:
    return [
        _strip_wrapping_quotes(origin)
        for origin in cors_raw.split(",")
        if _strip_wrapping_quotes(origin)
    ]


def _validate_database_url_for_runtime(database_url: str) -> None:
    parsed = urlparse(database_url)
    scheme = parsed.scheme
    postgres_schemes = {"postgres", "postgresql", "postgresql+psycopg"}

    if not scheme:
        raise RuntimeError("DATABASE_URL is missing URL scheme (expected postgresql:// or sqlite://).")
    if scheme == "sqlite":
        return
    if scheme not in postgres_schemes:
        raise RuntimeError(
            f"DATABASE_URL has unsupported scheme '{scheme}' "
            "(expected postgresql://, postgresql+psycopg:// or sqlite://)."
        )
    if not parsed.hostname:
        raise RuntimeError("DATABASE_URL is missing host.")
    if not parsed.path.lstrip("/"):
        raise RuntimeError("DATABASE_URL is missing database name in path.")


def _validate_required_env_for_runtime() -> None:
    errors = []

    backend = settings.ORDER_STORE
    if backend not in ORDER_STORE_BACKENDS:
        errors.append(
            f"ORDER_STORE must be one of {', '.join(sorted(ORDER_STORE_BACKENDS))} (got '{backend}')."
        )
    elif backend == "database":
        try:
            _validate_database_url_for_runtime(settings.DATABASE_URL)
        except (ValueError, RuntimeError) as exc:
            errors.append(str(exc))

    if not _is_http_url(settings.ATLANTIC_API_URL):
        errors.append("ATLANTIC_API_URL must be an absolute http(s) URL.")

    origins = _get_effective_cors_origins(settings.CORS_ORIGINS)
    if not origins:
        errors.append("CORS_ORIGINS must contain at least one comma-separated origin URL.")
    else:
        invalid_origins = [origin for origin in origins if origin != "*" and not _is_http_url(origin)]
        if invalid_origins:
            errors.append(f"CORS_ORIGINS contains invalid URL(s): {', '.join(invalid_origins)}")

    if errors:
        raise RuntimeError("Startup environment validation failed: " + " | ".join(errors))


def build_order_store() -> tuple[OrderStore, Engine | None]:
    if settings.ORDER_STORE != "database":
        logger.info("Using in-memory order store; orders are lost on restart.")
        return InMemoryOrderStore(), None

    database_url = settings.DATABASE_URL
    engine = create_db_engine(database_url)
    init_db(engine, database_url)
    logger.info("Using database order store.")
    return SqlOrderStore(create_session_factory(engine)), engine


def build_order_service(store_config: StoreConfig, store: OrderStore) -> OrderService:
    timeout = settings.HTTP_TIMEOUT_SECONDS
    return OrderService(
        config=store_config,
        store=store,
        gateway=AtlanticGateway(
            api_key=store_config.atlantic_api_key,
            base_url=settings.ATLANTIC_API_URL,
            timeout=timeout,
        ),
        panel=PanelClient(
            panel_url=store_config.pterodactyl_panel_url,
            api_key=store_config.pterodactyl_api_key,
            timeout=timeout,
        ),
        reference_prefix=settings.ORDER_REFERENCE_PREFIX,
        fallback_email_domain=settings.FALLBACK_EMAIL_DOMAIN,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup initiated.")
    _validate_required_env_for_runtime()

    config_path = settings.STORE_CONFIG_PATH
    ensure_config_file(config_path, settings)
    try:
        store_config = load_store_config(config_path)
    except ConfigReadError as exc:
        logger.exception("Store configuration could not be loaded: %s", exc.message)
        raise

    store, engine = build_order_store()
    service = build_order_service(store_config, store)
    app.state.order_service = service
    logger.info(
        "Application startup completed successfully (%s packages).",
        len(store_config.packages),
    )
    try:
        yield
    finally:
        service.gateway.close()
        service.panel.close()
        if engine is not None:
            engine.dispose()
        logger.info("Application shutdown completed.")


app = FastAPI(
    title="Hosting Store API",
    description=(
        "Order and payment orchestration for panel hosting packages: "
        "QRIS payment through Atlantic H2H, provisioning through the Pterodactyl application API."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Packages", "description": "Hosting package catalog."},
        {"name": "Orders", "description": "Create orders and poll their status."},
        {"name": "Webhooks", "description": "Called by Atlantic H2H."},
        {"name": "Health", "description": "Liveness probe."},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_effective_cors_origins(settings.CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(packages.router, prefix="/api", tags=["Packages"])
app.include_router(order.router, prefix="/api", tags=["Orders"])
app.include_router(atlantic_callback.router, prefix="/api", tags=["Webhooks"])


@app.get("/")
def root():
    return {"status": "ok", "service": "Hosting Store API"}


@app.get("/api/health", tags=["Health"])
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
