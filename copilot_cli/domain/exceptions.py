"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
CLI 层据此统一捕获、输出到 stderr，并映射为进程退出码。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NOT_AUTHENTICATED"）。
        message: 用户可读错误信息。
        http_status: 来自远端 API 时对应的 HTTP 状态码，默认 400。
        extra: 其他补充字段（例如 scopes、conversation_id 等）。
        exit_code: CLI 退出码，由子类覆盖。
    """

    exit_code = 5

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class AuthError(BusinessError):
    """未登录、token 过期或交互式登录失败。"""

    exit_code = 1


class PermissionDeniedError(BusinessError):
    """远端 API 返回 403，缺少所需的授权 scope。"""

    exit_code = 2


class NetworkError(BusinessError):
    """网络层错误，例如 DNS 失败、连接失败、超时等。"""

    exit_code = 3


class InvalidInputError(BusinessError):
    """用户输入或命令行调用不合法。"""

    exit_code = 4


class ConversationError(BusinessError):
    """会话创建失败、响应格式异常或其他未归类错误。"""

    exit_code = 5


class ApiError(ConversationError):
    """远端 API 返回非 2xx（且不属于 401/403）时抛出。"""
