from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

from pydantic import ValidationError
from supabase import (
    AsyncClient,
    AuthError,
    FunctionsError,
    PostgrestAPIError,
    StorageException,
    acreate_client,
)

from basekit.call_guard import CallGuard
from basekit.config import FacadeConfig, Settings
from basekit.device import read_device_id
from basekit.errors import BackendError, FacadeError
from basekit.filters import QueryFilter
from basekit.loading import LoadingObserver, LoadingSignal
from basekit.log import configure_logging
from basekit.schemas import AppUser, RegistrationResult, StoredFile
from basekit.telemetry import Telemetry

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEAK_PASSWORD_MESSAGE = "Password does not meet security requirements"
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected service response"
REGISTERING_MESSAGE = "Registering"

_HAS_LETTER = re.compile(r"[A-Za-z]")
_HAS_DIGIT = re.compile(r"[0-9]")

_SDK_ERRORS: tuple[tuple[type[Exception], str], ...] = (
    (PostgrestAPIError, "postgrest"),
    (AuthError, "auth"),
    (StorageException, "storage"),
    (FunctionsError, "functions"),
)
_SDK_ERROR_TYPES = tuple(error_type for error_type, _ in _SDK_ERRORS)


def _sdk_error_kind(exc: Exception) -> str:
    return next(kind for error_type, kind in _SDK_ERRORS if isinstance(exc, error_type))


def _sdk_error_message(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


class BackendFacade:
    """Thin async front for a Supabase client.

    Every call except ``list_files`` runs inside a loading scope, and SDK
    errors surface as ``BackendError``. Edge function calls go through a
    per-name ``CallGuard``.
    """

    def __init__(
        self,
        client: AsyncClient,
        config: FacadeConfig | None = None,
        on_loading: LoadingObserver | None = None,
        guard: CallGuard | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._client = client
        self._config = config or FacadeConfig()
        self._telemetry = telemetry or Telemetry()
        self._loading = LoadingSignal(observer=on_loading, telemetry=self._telemetry)
        self._guard = guard or CallGuard(
            default_window=self._config.fn_rate_limit_window_seconds,
            telemetry=self._telemetry,
        )

    @classmethod
    async def create(
        cls,
        url: str,
        key: str,
        config: FacadeConfig | None = None,
        on_loading: LoadingObserver | None = None,
    ) -> BackendFacade:
        facade_config = config or FacadeConfig()
        configure_logging(facade_config.debug)
        client = await acreate_client(url, key)
        return cls(client, config=facade_config, on_loading=on_loading)

    @classmethod
    async def from_env(
        cls,
        settings: Settings | None = None,
        on_loading: LoadingObserver | None = None,
    ) -> BackendFacade:
        env = settings or Settings()
        return await cls.create(
            env.supabase_url,
            env.supabase_anon_key,
            config=env.to_facade_config(),
            on_loading=on_loading,
        )

    @property
    def client(self) -> AsyncClient:
        return self._client

    @property
    def guard(self) -> CallGuard:
        return self._guard

    @property
    def loading(self) -> LoadingSignal:
        return self._loading

    def set_fn_rate_limit_window(self, seconds: float) -> None:
        self._guard.set_default_window(seconds)

    async def get_device_id(self) -> str:
        try:
            return await asyncio.to_thread(read_device_id)
        except OSError as exc:
            logger.info("get_device_id failed: %s", exc)
            return "unknown"

    # -- session -----------------------------------------------------------

    async def current_user(self) -> AppUser | None:
        session = await self._client.auth.get_session()
        return AppUser.from_auth_user(session.user if session is not None else None)

    def on_auth_state_change(self, callback: Callable[[Any, Any], None]) -> Any:
        return self._client.auth.on_auth_state_change(callback)

    def on_user_change(self, callback: Callable[[AppUser | None], None]) -> Any:
        def relay(event: Any, session: Any) -> None:
            callback(AppUser.from_auth_user(session.user if session is not None else None))

        return self.on_auth_state_change(relay)

    # -- database ----------------------------------------------------------

    async def db_select(
        self,
        table: str,
        *,
        order_by: str | None = None,
        ascending: bool = True,
        eq: Mapping[str, Any] | None = None,
        in_filter: Mapping[str, Sequence[Any]] | None = None,
        limit: int | None = None,
        columns: str = "*",
        filters: QueryFilter | None = None,
    ) -> list[dict[str, Any]]:
        query_filter = QueryFilter.from_mapping(
            eq=eq,
            in_filter=in_filter,
            order_by=order_by,
            ascending=ascending,
            limit=limit,
        )
        if filters is not None:
            query_filter = query_filter.extend(filters)

        async def select() -> list[dict[str, Any]]:
            query = query_filter.apply(self._client.table(table).select(columns))
            response = await query.execute()
            return list(response.data or [])

        return await self._run(select)

    async def db_insert(self, table: str, values: Mapping[str, Any]) -> dict[str, Any]:
        async def insert() -> dict[str, Any]:
            response = await self._client.table(table).insert(dict(values)).execute()
            rows = response.data or []
            if not rows:
                raise self._backend_error("postgrest", f"insert into {table} returned no row")
            return rows[0]

        return await self._run(insert)

    async def db_update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        eq: Mapping[str, Any] | None = None,
        filters: QueryFilter | None = None,
    ) -> dict[str, Any]:
        query_filter = self._row_filter(eq, filters)

        async def update() -> dict[str, Any]:
            query = query_filter.apply(self._client.table(table).update(dict(values)))
            # Singular Accept header: PostgREST rolls back unless exactly one row matches.
            response = await query.single().execute()
            if not response.data:
                raise self._backend_error("postgrest", f"update on {table} returned no row")
            return response.data

        return await self._run(update)

    async def db_delete(
        self,
        table: str,
        *,
        eq: Mapping[str, Any] | None = None,
        filters: QueryFilter | None = None,
    ) -> None:
        query_filter = self._row_filter(eq, filters)

        async def delete() -> None:
            query = query_filter.apply(self._client.table(table).delete())
            await query.execute()

        await self._run(delete)

    async def db_rpc(self, fn: str, params: Mapping[str, Any] | None = None) -> Any:
        async def rpc() -> Any:
            response = await self._client.rpc(fn, dict(params or {})).execute()
            return response.data

        return await self._run(rpc)

    # -- edge functions ----------------------------------------------------

    async def fn_invoke(self, name: str, body: Any = None, window: float | None = None) -> Any:
        async def invoke() -> Any:
            return await self._client.functions.invoke(
                name,
                invoke_options={"body": body, "responseType": "json"},
            )

        return await self._run(lambda: self._guard.attempt(name, invoke, window=window))

    # -- auth --------------------------------------------------------------

    async def auth_sign_in_with_password(self, email: str, password: str) -> None:
        await self._run(lambda: self._sign_in({"email": email, "password": password}))

    async def auth_sign_in_with_phone(self, phone: str, password: str) -> None:
        await self._run(lambda: self._sign_in({"phone": phone, "password": password}))

    async def auth_sign_up_with_metadata(
        self, email: str, password: str, data: Mapping[str, Any] | None = None
    ) -> None:
        await self._run(
            lambda: self._sign_up({"email": email, "password": password}, data, "email+metadata")
        )

    async def auth_sign_up_phone_with_metadata(
        self, phone: str, password: str, data: Mapping[str, Any] | None = None
    ) -> None:
        await self._run(
            lambda: self._sign_up({"phone": phone, "password": password}, data, "phone+metadata")
        )

    async def auth_sign_out(self) -> None:
        await self._run(self._client.auth.sign_out)

    async def auth_reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self._run(
            lambda: self._client.auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        )

    async def auth_update_password(self, password: str) -> None:
        await self._run(lambda: self._client.auth.update_user({"password": password}))

    async def auth_update_user_metadata(self, data: Mapping[str, Any]) -> None:
        await self._run(lambda: self._client.auth.update_user({"data": dict(data)}))

    async def auth_register_phone_via_edge(
        self,
        phone: str,
        password: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> RegistrationResult:
        async def register() -> RegistrationResult:
            if not self.is_strong_password(password):
                return RegistrationResult(code=400, message=WEAK_PASSWORD_MESSAGE)
            payload: dict[str, Any] = {"phone": phone, "password": password}
            if metadata:
                payload.update(metadata)
            data = await self.fn_invoke(self._config.registration_function, body=payload)
            if isinstance(data, dict):
                try:
                    return RegistrationResult.model_validate(data)
                except ValidationError as exc:
                    logger.info("registration response rejected: %s", exc)
            return RegistrationResult(code=500, message=UNEXPECTED_RESPONSE_MESSAGE)

        return await self._run(register, REGISTERING_MESSAGE)

    def is_strong_password(self, password: str) -> bool:
        if len(password) < self._config.min_password_length:
            return False
        return bool(_HAS_LETTER.search(password)) and bool(_HAS_DIGIT.search(password))

    # -- storage -----------------------------------------------------------

    async def list_files(self, bucket: str, prefix: str) -> list[StoredFile]:
        files = await self._client.storage.from_(bucket).list(prefix)
        return [StoredFile.model_validate(item) for item in files]

    async def upload_to_signed_url(
        self,
        bucket: str,
        key: str,
        token: str,
        file: Path | bytes | BinaryIO,
    ) -> str:
        async def upload() -> str:
            response = await self._client.storage.from_(bucket).upload_to_signed_url(key, token, file)
            return response.full_path

        return await self._run(upload)

    async def delete_file(self, bucket: str, path: str) -> None:
        await self._run(lambda: self._client.storage.from_(bucket).remove([path]))

    # -- internals ---------------------------------------------------------

    async def _run(self, action: Callable[[], Awaitable[T]], message: str | None = None) -> T:
        async with self._loading.scope(message):
            try:
                return await action()
            except FacadeError:
                raise
            except _SDK_ERROR_TYPES as exc:
                raise self._backend_error(_sdk_error_kind(exc), _sdk_error_message(exc)) from exc
            except Exception as exc:
                logger.error("unexpected: %s", exc)
                raise

    def _backend_error(self, kind: str, message: str) -> BackendError:
        logger.error("%s: %s", kind, message)
        self._telemetry.record_backend_error(kind)
        return BackendError(kind, message)

    async def _sign_in(self, credentials: dict[str, str]) -> None:
        await self._client.auth.sign_in_with_password(credentials)

    async def _sign_up(
        self,
        credentials: dict[str, Any],
        data: Mapping[str, Any] | None,
        log_tag: str,
    ) -> None:
        if data is not None:
            credentials = {**credentials, "options": {"data": dict(data)}}
        response = await self._client.auth.sign_up(credentials)
        if response.user is None and response.session is None:
            logger.info("sign_up(%s) returned no user/session", log_tag)

    @staticmethod
    def _row_filter(eq: Mapping[str, Any] | None, filters: QueryFilter | None) -> QueryFilter:
        query_filter = QueryFilter.from_mapping(eq=eq)
        if filters is not None:
            query_filter = query_filter.extend(filters)
        if not query_filter.row_only:
            raise ValueError("update and delete accept only eq/in predicates")
        return query_filter
