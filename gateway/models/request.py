from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional, Union


class Message(BaseModel):
    """Single chat message in the upstream role/content shape"""
    role: str = Field(..., pattern="^(system|user|assistant)$")
    content: str


class GenerationParams(BaseModel):
    """Optional sampling parameters forwarded to the upstream.

    Accepts both camelCase (caller schema) and snake_case names; field names
    match the upstream's request body so `model_dump()` can be sent as-is.
    """
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1, alias="maxTokens")
    top_p: Optional[float] = Field(default=None, gt=0.0, le=1.0, alias="topP")
    presence_penalty: Optional[float] = Field(
        default=None, ge=-2.0, le=2.0, alias="presencePenalty"
    )
    frequency_penalty: Optional[float] = Field(
        default=None, ge=-2.0, le=2.0, alias="frequencyPenalty"
    )
    stop: Optional[Union[str, List[str]]] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_upstream(self) -> Dict[str, Any]:
        """Parameters the caller actually set, under upstream names."""
        return self.model_dump(exclude_none=True, by_alias=False)


class ChatStreamRequest(GenerationParams):
    messages: List[Message] = Field(..., min_length=1)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "messages": [
                        {"role": "system", "content": "You are a helpful assistant."},
                        {"role": "user", "content": "What is the capital of France?"},
                    ],
                    "temperature": 0.7,
                    "maxTokens": 500,
                }
            ]
        },
    )

    def generation_params(self) -> GenerationParams:
        return GenerationParams.model_validate(
            self.model_dump(exclude={"messages"}, exclude_none=True)
        )

    def message_dicts(self) -> List[dict]:
        return [m.model_dump() for m in self.messages]


class GraphQLRequest(BaseModel):
    """GraphQL-style document: the operation lives in `query`, inputs in `variables`"""
    query: Any = None
    variables: Any = None  # object expected; checked by the route
