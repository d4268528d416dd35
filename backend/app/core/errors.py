from fastapi import Request, status
from fastapi.responses import JSONResponse


class InvalidArgument(ValueError):
    """호출자 버그로 인한 잘못된 입력 (NaN 좌표, 범위 밖 위경도, 0 이하 반경 등)"""


class PersistenceFailure(RuntimeError):
    """배지 지급 등 개별 저장 실패. 로깅 후 다음 항목을 계속 처리한다."""

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


async def invalid_argument_handler(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})
