import logging

from classrate.application.exceptions import ConfigurationError
from classrate.application.ports.session_store import SessionStorePort
from classrate.application.use_cases.browse_sessions import (
    GetSessionUseCase,
    ListSessionsUseCase,
    SummarizeSessionUseCase,
)
from classrate.application.use_cases.create_session import CreateSessionUseCase
from classrate.application.use_cases.delete_session import DeleteSessionUseCase
from classrate.application.use_cases.submit_evaluation import SubmitEvaluationUseCase
from classrate.core.config import Settings, settings
from classrate.infrastructure.kv.redis_rest_client import RedisRestClient
from classrate.infrastructure.store.json_store import JsonSessionStore
from classrate.infrastructure.store.kv_store import KvSessionStore
from classrate.infrastructure.store.memory_store import MemorySessionStore
from classrate.infrastructure.store.sql_store import SqlSessionStore

logger = logging.getLogger(__name__)

STORE_PROVIDERS = ("memory", "json", "sql", "kv")

_session_store: SessionStorePort | None = None


def _resolve_provider(cfg: Settings) -> str:
    explicit = (cfg.STORE_PROVIDER or "").strip().lower()
    if explicit:
        if explicit not in STORE_PROVIDERS:
            raise ConfigurationError(f"Unknown STORE_PROVIDER '{explicit}', expected one of {STORE_PROVIDERS}")
        return explicit
    if cfg.database_url:
        return "sql"
    if cfg.KV_REST_API_URL or cfg.KV_REST_API_TOKEN:
        return "kv"
    # the JSON file store is opt-in only, via STORE_PROVIDER=json
    return "memory"


def build_session_store(cfg: Settings) -> SessionStorePort:
    provider = _resolve_provider(cfg)

    if provider == "sql":
        if not cfg.database_url:
            raise ConfigurationError("STORE_PROVIDER=sql requires POSTGRES_URL or DATABASE_URL")
        store: SessionStorePort = SqlSessionStore(url=cfg.database_url)
    elif provider == "kv":
        client = RedisRestClient(url=cfg.KV_REST_API_URL or "", token=cfg.KV_REST_API_TOKEN or "")
        store = KvSessionStore(client=client, key_prefix=cfg.KV_KEY_PREFIX)
    elif provider == "json":
        store = JsonSessionStore(data_dir=cfg.JSON_STORE_DIR)
    else:
        store = MemorySessionStore()

    logger.info("Using %s session store", store.name, extra={"store": store.name})
    if store.name == "memory":
        logger.warning("Sessions are kept in memory only and will be lost on restart")
    return store


def get_session_store() -> SessionStorePort:
    global _session_store
    if _session_store is None:
        _session_store = build_session_store(settings)
    return _session_store


def set_session_store(store: SessionStorePort | None) -> None:
    """Replace the process-wide store (tests, embedding)."""
    global _session_store
    _session_store = store


def get_list_sessions_use_case() -> ListSessionsUseCase:
    return ListSessionsUseCase(store=get_session_store())


def get_get_session_use_case() -> GetSessionUseCase:
    return GetSessionUseCase(store=get_session_store())


def get_summarize_session_use_case() -> SummarizeSessionUseCase:
    return SummarizeSessionUseCase(store=get_session_store())


def get_create_session_use_case() -> CreateSessionUseCase:
    return CreateSessionUseCase(store=get_session_store(), default_created_by=settings.DEFAULT_CREATED_BY)


def get_submit_evaluation_use_case() -> SubmitEvaluationUseCase:
    return SubmitEvaluationUseCase(
        store=get_session_store(),
        default_evaluator=settings.DEFAULT_EVALUATOR,
        score_tolerance=settings.SCORE_TOLERANCE,
    )


def get_delete_session_use_case() -> DeleteSessionUseCase:
    return DeleteSessionUseCase(store=get_session_store())
