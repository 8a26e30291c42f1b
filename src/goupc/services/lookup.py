"""Go-UPC lookup service — barcode requests, error mapping and normalisation.

The remote API does not commit to a single response schema: the product may
or may not be wrapped in a ``product`` key, field names come in camel and
snake case, and specifications arrive as plain strings or as objects with
varying key names.  :func:`format_product` folds all of that into a
:class:`~goupc.models.NormalizedProduct`.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from goupc.models import (
    NOT_AVAILABLE,
    BatchFailure,
    BatchResult,
    BatchSuccess,
    NormalizedProduct,
    PairSpec,
    StringSpec,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://go-upc.com/api/v1"
DEFAULT_TIMEOUT = 15.0

# Characters left unescaped by JavaScript's encodeURIComponent (besides -_.~).
_URI_COMPONENT_SAFE = "!*'()"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class BarcodeLookupError(RuntimeError):
    """Base class for a failed lookup of a single barcode."""


class UnauthorizedError(BarcodeLookupError):
    """The API rejected the request because the key is missing or invalid."""

    def __init__(self) -> None:
        super().__init__("Unauthorized: invalid or missing API key. Run: goupc config set --api-key <KEY>")


class NotFoundError(BarcodeLookupError):
    """The API has no product for the barcode."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Product not found for barcode: {code}")


class RateLimitedError(BarcodeLookupError):
    """The API refused the request because the plan's rate limit was hit."""

    def __init__(self) -> None:
        super().__init__("Rate limit exceeded. Please wait before making more requests.")


class ApiError(BarcodeLookupError):
    """Any other unsuccessful HTTP response."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"API error ({status}): {message}")


class NetworkError(BarcodeLookupError):
    """No HTTP response was received (DNS, connection or timeout failure)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Network error: {reason}")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GoUpcClient:
    """Authenticated client for the Go-UPC ``/code/{barcode}`` endpoint.

    Args:
        api_key:   Bearer token sent with every request.
        base_url:  API root, without a trailing slash.
        timeout:   Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def lookup(self, code: str) -> dict[str, Any]:
        """Look up a product by barcode and return the raw response body.

        The barcode is escaped into the URL path as-is; no checksum or format
        validation is done locally.

        Raises:
            BarcodeLookupError: one of its subclasses, depending on how the
                request failed.  Nothing is retried.
        """
        url = f"{self.base_url}/code/{quote(code, safe=_URI_COMPONENT_SAFE)}"
        logger.debug("GET %s", url)
        try:
            with httpx.Client(
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.debug("Lookup of %s returned HTTP %s", code, e.response.status_code)
            raise _error_for_status(code, e) from e
        except httpx.RequestError as e:
            logger.debug("Lookup of %s failed without a response: %r", code, e)
            raise NetworkError(str(e) or type(e).__name__) from e
        except UnicodeEncodeError as e:
            # httpx only accepts ASCII header values.
            logger.debug("Cannot build request headers for %s: %s", code, e)
            raise NetworkError(str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "invalid JSON response") from e
        if not isinstance(data, dict):
            raise ApiError(response.status_code, "invalid JSON response")
        return data

    def lookup_batch(self, codes: Iterable[str]) -> list[BatchResult]:
        """Look up several barcodes one after another.

        Returns one result per input code, in input order.  A failed lookup is
        recorded as a :class:`~goupc.models.BatchFailure` carrying the error
        message and does not stop the remaining lookups.
        """
        results: list[BatchResult] = []
        for code in codes:
            try:
                data = self.lookup(code)
            except BarcodeLookupError as e:
                logger.info("Lookup failed for %s: %s", code, e)
                results.append(BatchFailure(code=code, error=str(e)))
            else:
                results.append(BatchSuccess(code=code, data=data))
        return results


def _error_for_status(code: str, exc: httpx.HTTPStatusError) -> BarcodeLookupError:
    """Translate an HTTP error response into the lookup error taxonomy."""
    status = exc.response.status_code
    if status == 401:
        return UnauthorizedError()
    if status == 404:
        return NotFoundError(code)
    if status == 429:
        return RateLimitedError()
    return ApiError(status, _body_message(exc.response) or str(exc))


def _body_message(response: httpx.Response) -> str | None:
    """Return the ``message`` or ``error`` field of a JSON error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "error"):
        value = body.get(key)
        if _is_present(value):
            return _as_text(value)
    return None


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

Accessor = Callable[[Mapping[str, Any]], Any]


def _key(name: str) -> Accessor:
    return lambda source: source.get(name)


def _first_item(name: str) -> Accessor:
    def accessor(source: Mapping[str, Any]) -> Any:
        value = source.get(name)
        if isinstance(value, list) and value:
            return value[0]
        return None

    return accessor


#: Candidate accessors per output field, read from the (unwrapped) product.
_PRODUCT_FIELDS: dict[str, tuple[Accessor, ...]] = {
    "name": (_key("name"),),
    "description": (_key("description"),),
    "brand": (_key("brand"),),
    "category": (_key("category"),),
    "imageUrl": (_key("imageUrl"), _key("image_url"), _first_item("images")),
}

#: Candidate accessors per output field, read from the top-level response.
_RESPONSE_FIELDS: dict[str, tuple[Accessor, ...]] = {
    "barcode": (_key("barcode"), _key("code")),
    "barcodeType": (_key("barcodeType"), _key("type")),
}

_SPEC_FIELDS: tuple[Accessor, ...] = (_key("specs"), _key("attributes"), _key("specifications"))


def _is_present(value: Any) -> bool:
    """Return False for missing, null and empty values."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value) > 0
    return True


def _first_present(source: Mapping[str, Any], accessors: Iterable[Accessor]) -> Any:
    """Evaluate *accessors* in order and return the first present value."""
    for accessor in accessors:
        value = accessor(source)
        if _is_present(value):
            return value
    return None


def _first_defined(source: Mapping[str, Any], accessors: Iterable[Accessor]) -> Any:
    """Evaluate *accessors* in order and return the first non-null value.

    Unlike :func:`_first_present`, an empty list or mapping stops the chain.
    """
    for accessor in accessors:
        value = accessor(source)
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def classify_spec(entry: Any) -> StringSpec | PairSpec | None:
    """Turn one raw specification entry into a spec variant.

    Strings are kept as text.  Mappings use ``key``/``name`` for the key and
    ``value``/``val`` for the value; when those are missing, the mapping's
    first property supplies the key (its name) and the value.  Any other
    entry, and an empty mapping, yields ``None``.
    """
    if isinstance(entry, str):
        return StringSpec(text=entry)
    if not isinstance(entry, Mapping):
        return None
    first = next(iter(entry.items()), None)
    if first is None:
        return None
    first_name, first_value = first

    key = _first_present(entry, (_key("key"), _key("name")))
    if key is None:
        key = first_name
    value = _first_present(entry, (_key("value"), _key("val")))
    if value is None:
        value = first_value
    return PairSpec(
        key=_as_text(key),
        value=NOT_AVAILABLE if value is None else _as_text(value),
    )


def _normalise_specs(raw: Any) -> list[StringSpec | PairSpec]:
    if isinstance(raw, Mapping):
        return [
            PairSpec(key=_as_text(key), value=NOT_AVAILABLE if value is None else _as_text(value))
            for key, value in raw.items()
        ]
    if not isinstance(raw, list):
        return []
    specs = []
    for entry in raw:
        spec = classify_spec(entry)
        if spec is not None:
            specs.append(spec)
    return specs


def format_product(data: Mapping[str, Any]) -> NormalizedProduct:
    """Extract the display fields from a raw Go-UPC response.

    Pure: the same *data* always yields an equal result and *data* is never
    modified.
    """
    wrapped = data.get("product")
    product: Mapping[str, Any] = wrapped if isinstance(wrapped, Mapping) else data

    fields: dict[str, Any] = {}
    for name, accessors in _PRODUCT_FIELDS.items():
        value = _first_present(product, accessors)
        fields[name] = NOT_AVAILABLE if value is None else _as_text(value)
    for name, accessors in _RESPONSE_FIELDS.items():
        value = _first_present(data, accessors)
        fields[name] = NOT_AVAILABLE if value is None else _as_text(value)
    fields["specs"] = _normalise_specs(_first_defined(product, _SPEC_FIELDS))
    return NormalizedProduct(**fields)
