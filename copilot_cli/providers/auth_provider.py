"""基于 MSAL 的 Token 提供方。

本模块负责：

1. 构建 MSAL PublicClientApplication，并挂载持久化（优先加密）的 token 缓存。
2. 交互式登录（浏览器或设备码），登出时清空缓存中的全部账户。
3. 为 API 调用静默获取 token；缓存为空或需要重新交互时抛出 AuthError。

MSAL 应用与缓存是进程级共享状态，首次创建使用锁 + 双重检查，
保证每个 provider 只会创建一个底层应用句柄。
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

import msal
import requests
from msal_extensions import FilePersistence, PersistedTokenCache, build_encrypted_persistence

from copilot_cli.config.settings import settings
from copilot_cli.domain.exceptions import AuthError, NetworkError
from copilot_cli.infrastructure.logging.logger import logger
from copilot_cli.providers.registry import COPILOT_API


LOGIN_HINT = "Please run 'copilot-cli login' to sign in."

# MSAL 返回这些错误时说明缓存的凭据已无法静默刷新，需要重新登录
_INTERACTION_ERRORS = {"interaction_required", "login_required", "consent_required", "invalid_grant"}


@dataclass
class LoginResult:
    """一次成功登录的摘要，供 CLI 展示。"""

    username: str
    expires_at: Optional[datetime] = None


class MsalAuthProvider:
    """MSAL 公共客户端的 TokenProvider 实现。

    - get_token: 静默获取 token（供 CopilotClient 使用）。
    - login / logout: 对应 CLI 的 login / logout 命令。

    app_factory 可在测试中注入桩应用，默认构建真实的 MSAL 应用。
    """

    name = "msal"

    def __init__(self, cfg=settings, app_factory: Optional[Callable[[], Any]] = None):
        self._settings = cfg
        self._app_factory = app_factory or self._build_app
        self._app: Any = None
        self._lock = threading.Lock()

    @property
    def scopes(self) -> List[str]:
        return list(COPILOT_API.scopes)

    def get_token(self) -> str:
        app = self._get_app()
        accounts = self._call(app.get_accounts)
        if not accounts:
            raise AuthError(code="NOT_AUTHENTICATED", message=f"Not authenticated. {LOGIN_HINT}")
        result = self._call(app.acquire_token_silent, self.scopes, account=accounts[0])
        if not result:
            raise AuthError(code="LOGIN_REQUIRED", message=f"Authentication required. {LOGIN_HINT}")
        if "access_token" not in result:
            if result.get("error") in _INTERACTION_ERRORS:
                raise AuthError(code="LOGIN_REQUIRED", message=f"Authentication required. {LOGIN_HINT}")
            raise AuthError(
                code="AUTH_FAILED",
                message=f"Authentication failed: {_describe(result)}",
                error=result.get("error"),
            )
        return result["access_token"]

    def login(self, device_code: bool = False, notify: Callable[[str], None] = print) -> LoginResult:
        """执行交互式登录并把 token 写入缓存。

        device_code=True 时使用设备码流程（适合无浏览器的终端），
        notify 用于向用户展示设备码提示。
        """

        app = self._get_app()
        if device_code:
            flow = self._call(app.initiate_device_flow, scopes=self.scopes)
            if "user_code" not in flow:
                raise AuthError(code="LOGIN_FAILED", message=f"Login failed: {_describe(flow)}")
            notify(flow["message"])
            result = self._call(app.acquire_token_by_device_flow, flow)
        else:
            result = self._call(
                app.acquire_token_interactive,
                scopes=self.scopes,
                prompt=msal.Prompt.SELECT_ACCOUNT,
            )
        if not result or "access_token" not in result:
            raise AuthError(code="LOGIN_FAILED", message=f"Login failed: {_describe(result or {})}")

        claims = result.get("id_token_claims") or {}
        username = claims.get("preferred_username") or claims.get("name") or "unknown"
        expires_at = None
        if result.get("expires_in"):
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(result["expires_in"]))
        logger.info("Login succeeded", extra={"extra": {"username": username, "device_code": device_code}})
        return LoginResult(username=username, expires_at=expires_at)

    def logout(self) -> int:
        """移除缓存中的所有账户，返回移除的数量。"""

        app = self._get_app()
        accounts = self._call(app.get_accounts)
        for account in accounts:
            app.remove_account(account)
        logger.info("Logout completed", extra={"extra": {"removed_accounts": len(accounts)}})
        return len(accounts)

    # ---- 内部实现 ----

    def _get_app(self) -> Any:
        if self._app is not None:
            return self._app
        with self._lock:
            if self._app is None:
                self._app = self._app_factory()
        return self._app

    def _build_app(self) -> msal.PublicClientApplication:
        return msal.PublicClientApplication(
            self._settings.client_id,
            authority=self._settings.authority,
            token_cache=self._build_token_cache(),
        )

    def _build_token_cache(self) -> PersistedTokenCache:
        path = self._settings.token_cache_path
        path.parent.mkdir(parents=True, exist_ok=True)
        location = str(path)
        try:
            # Windows DPAPI / macOS Keychain / Linux libsecret
            persistence = build_encrypted_persistence(location)
        except (ImportError, OSError, RuntimeError, ValueError) as exc:
            if not self._settings.token_cache_plaintext_fallback:
                raise AuthError(
                    code="TOKEN_CACHE_UNAVAILABLE",
                    message=f"Encrypted token cache is unavailable: {exc}",
                ) from exc
            logger.warning(f"Encrypted token cache unavailable, falling back to plaintext file: {exc}")
            persistence = FilePersistence(location)
        return PersistedTokenCache(persistence)

    @staticmethod
    def _call(func: Callable[..., Any], *args, **kwargs) -> Any:
        """调用 MSAL，并把底层网络异常转换为 NetworkError。"""

        try:
            return func(*args, **kwargs)
        except requests.RequestException as e:
            raise NetworkError(code="NETWORK_ERROR", message=f"Network error: {e}")


def _describe(result: dict) -> str:
    return result.get("error_description") or result.get("error") or "unknown error"
