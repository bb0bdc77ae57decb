"""
Error response helpers for routes.

Usage:
    from gateway.utils.exceptions import raise_configuration_error, graphql_error

    raise_configuration_error("DEEPSEEK_API_KEY is not configured")
    return graphql_error("Invalid GraphQL query")
"""

from typing import Iterable, NoReturn, Union

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse


def raise_configuration_error(detail: str) -> NoReturn:
    """Raise HTTP 500 for a server-side configuration problem."""
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )


def graphql_error(
    messages: Union[str, Iterable[str]],
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> JSONResponse:
    """GraphQL-style error body: {"errors": [{"message": ...}, ...]}"""
    if isinstance(messages, str):
        messages = [messages]
    return JSONResponse(
        status_code=status_code,
        content={"errors": [{"message": m} for m in messages]},
    )
