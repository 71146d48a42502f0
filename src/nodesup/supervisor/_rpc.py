"""JSON-RPC forwarding to the node's local HTTP endpoint.

Requests are built without a protocol version field and always use id 1.
Responses are validated as JSON-RPC envelopes and handed back as plain JSON
values; error objects inside a valid envelope are passed through untouched.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, final

import httpx
import orjson
from pydantic import BaseModel, ConfigDict, JsonValue, TypeAdapter, ValidationError
from structlog.typing import FilteringBoundLogger

from nodesup.exceptions import RpcParseError, RpcTransportError
from nodesup.utils import get_default_logger

from ._models import SupervisorConfig

RPC_REQUEST_ID = 1


@dataclass(frozen=True, slots=True)
class RpcRequestEnvelope:
    """A single JSON-RPC method call.

    Attributes:
        method: Method name.
        params: Positional arguments.
        id: Request id.
        jsonrpc: Protocol version, left off the wire when None.
    """

    method: str
    params: tuple[JsonValue, ...] = field(default_factory=tuple)
    id: int = RPC_REQUEST_ID
    jsonrpc: Literal["2.0"] | None = None

    def to_wire(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Return the JSON object sent over HTTP."""
        wire: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
            "method": self.method,
            "params": list(self.params),
            "id": self.id,
        }
        if self.jsonrpc is not None:
            wire["jsonrpc"] = self.jsonrpc
        return wire


class RpcErrorObject(BaseModel):
    """The ``error`` member of a failed JSON-RPC call."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    code: int
    message: str
    data: JsonValue = None


class RpcSuccess(BaseModel):
    """A successful JSON-RPC response."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    jsonrpc: Literal["2.0"] | None = None
    result: JsonValue
    id: int | str | None


class RpcFailure(BaseModel):
    """A failed JSON-RPC response."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    jsonrpc: Literal["2.0"] | None = None
    error: RpcErrorObject
    id: int | str | None


RpcOutput = RpcSuccess | RpcFailure
RpcResponseEnvelope = RpcOutput | list[RpcOutput]

_RESPONSE_ADAPTER: TypeAdapter[RpcResponseEnvelope] = TypeAdapter(RpcResponseEnvelope)


def decode_response(body: bytes) -> JsonValue:
    """Decode an HTTP body as a JSON-RPC response envelope.

    Args:
        body: Raw response body.

    Returns:
        The envelope re-serialized as a plain JSON value.

    Raises:
        RpcParseError: If the body is not JSON or not a JSON-RPC response.
    """
    try:
        envelope = _RESPONSE_ADAPTER.validate_python(orjson.loads(body))
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise RpcParseError.from_decode_error(e) from e
    return _RESPONSE_ADAPTER.dump_python(envelope, mode="json", exclude_unset=True)


@final
class RpcForwarder:
    """Forwards JSON-RPC calls to the node over HTTP.

    One HTTP request per call, no retries.
    """

    __slots__ = ("_logger", "_timeout", "_transport", "_url")

    def __init__(
        self,
        config: SupervisorConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the forwarder.

        Args:
            config: Supplies the endpoint address and request timeout.
            transport: Optional httpx transport, mainly for tests.
            logger: Logger for request diagnostics.
        """
        self._url = config.rpc_url
        self._timeout = config.rpc_timeout
        self._transport = transport
        self._logger = logger or get_default_logger()

    async def call_rpc(self, method: str, arguments: Sequence[JsonValue]) -> JsonValue:
        """Call a JSON-RPC method on the node.

        Args:
            method: Method name.
            arguments: Positional arguments.

        Returns:
            The decoded JSON-RPC response as a plain JSON value.

        Raises:
            RpcTransportError: If the HTTP request fails.
            RpcParseError: If the response is not a JSON-RPC envelope.
        """
        request = RpcRequestEnvelope(method=method, params=tuple(arguments))
        self._logger.debug("rpc_call", method=method, url=self._url)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                trust_env=False,
            ) as client:
                response = await client.post(
                    self._url,
                    content=orjson.dumps(request.to_wire()),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            self._logger.warning("rpc_transport_failed", method=method, error=str(e))
            raise RpcTransportError.from_http_error(e, url=self._url) from e

        return decode_response(response.content)
