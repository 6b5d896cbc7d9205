"""Core 异常体系

所有命令失败都以结构化原因返回给调用方，核心层内部不做重试。
"""


class AusdauerError(Exception):
    """核心层基础异常"""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        """
        Args:
            message: 错误描述（会返回给调用方）
        """
        super().__init__(message)
        self.message = message


class Forbidden(AusdauerError):
    """角色或归属校验失败"""

    code = "FORBIDDEN"
    status_code = 403


class NotFound(AusdauerError):
    """引用的任务或人员不存在"""

    code = "NOT_FOUND"
    status_code = 404


class InvalidInput(AusdauerError):
    """必填字段缺失或格式错误"""

    code = "INVALID_INPUT"
    status_code = 400


class Conflict(AusdauerError):
    """乐观并发校验失败：version 已被其他写入者推进"""

    code = "CONFLICT"
    status_code = 409

    def __init__(self, task_id: str, expected_version: int) -> None:
        super().__init__(
            f"Task {task_id} was modified concurrently (expected version {expected_version})"
        )
        self.task_id = task_id
        self.expected_version = expected_version


class StoreFailure(AusdauerError):
    """存储协作方 I/O 错误，核心层不再细分"""

    code = "STORE_FAILURE"
    status_code = 503

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的存储操作名
            original_error: 原始异常
        """
        super().__init__(f"Store operation failed: {operation}")
        self.operation = operation
        self.original_error = original_error
