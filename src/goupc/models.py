"""Pydantic models for goupc lookup results."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

NOT_AVAILABLE = "N/A"


class StringSpec(BaseModel):
    """A specification line given as plain text."""

    kind: Literal["text"] = "text"
    text: str


class PairSpec(BaseModel):
    """A specification given as a key/value pair."""

    kind: Literal["pair"] = "pair"
    key: str
    value: str


SpecEntry = Annotated[StringSpec | PairSpec, Field(discriminator="kind")]


class NormalizedProduct(BaseModel):
    """Display fields extracted from a raw Go-UPC response.

    Every text field falls back to ``"N/A"`` when the response does not
    provide it; ``specs`` falls back to an empty list.
    """

    name: str = NOT_AVAILABLE
    description: str = NOT_AVAILABLE
    brand: str = NOT_AVAILABLE
    category: str = NOT_AVAILABLE
    imageUrl: str = NOT_AVAILABLE
    specs: list[SpecEntry] = []
    barcode: str = NOT_AVAILABLE
    barcodeType: str = NOT_AVAILABLE


class BatchSuccess(BaseModel):
    """A barcode from a batch that was found."""

    code: str
    data: dict[str, Any]


class BatchFailure(BaseModel):
    """A barcode from a batch whose lookup failed."""

    code: str
    error: str


BatchResult = BatchSuccess | BatchFailure
